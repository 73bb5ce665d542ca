from typing import Any, Dict, List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field


class ReviewIn(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    reviewText: str = Field(..., min_length=1, max_length=2000)


class ReviewOut(BaseModel):
    reviewerName: Optional[str] = None
    reviewerPhoto: Optional[str] = None
    reviewerEmail: Optional[str] = None
    rating: int
    reviewText: str
    date: Optional[str] = None
    # position in the stored reviews array
    index: Optional[int] = None


class ProductIn(BaseModel):
    id: Optional[str] = None
    name: str
    price: float = Field(..., ge=0)
    discount: Optional[Union[str, float]] = None
    description: Optional[str] = None
    categories: List[str] = []
    colors: List[str] = []
    sizes: List[Union[str, float]] = []
    defaultImage: Optional[str] = None
    defaultColorName: Optional[str] = None
    imageUrls: Dict[str, List[str]] = {}


class ProductPatch(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[Union[str, float]] = None
    description: Optional[str] = None
    categories: Optional[List[str]] = None
    colors: Optional[List[str]] = None
    sizes: Optional[List[Union[str, float]]] = None
    defaultImage: Optional[str] = None
    defaultColorName: Optional[str] = None
    imageUrls: Optional[Dict[str, List[str]]] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: str
    name: str
    price: Optional[float] = None
    discount: Optional[Any] = None
    categories: List[str] = []
    averageRating: float = 0.0
    reviewCount: int = 0
    mainImage: str = ""


class GalleryOut(BaseModel):
    productId: str
    color: str
    images: List[str]
    mainImage: str
