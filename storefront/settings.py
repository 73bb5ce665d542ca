from __future__ import annotations
from typing import List, Optional, Tuple
from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
import os

from .pricing import DEFAULT_TAX_SLABS, PricingConfig

def _parse_cors(v: Optional[str | List[str]]) -> List[str]:
    """
    Accept JSON array (e.g. '["http://localhost:3000"]') or
    comma-separated string ('http://localhost:3000,http://127.0.0.1:3000').
    """
    if v is None:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    if isinstance(v, list):
        return v
    s = v.strip()
    if not s:
        return ["http://localhost:3000", "http://127.0.0.1:3000"]
    # try JSON first
    try:
        parsed = json.loads(s)
        if isinstance(parsed, list) and all(isinstance(x, str) for x in parsed):
            return parsed
    except json.JSONDecodeError:
        pass
    # fallback: comma separated
    return [p.strip() for p in s.split(",") if p.strip()]


def _parse_slabs(v: Optional[str | List[List[float]]]) -> Tuple[Tuple[float, float], ...]:
    """
    Accept a JSON list of [threshold, rate] pairs, e.g. '[[2500, 0.18], [0, 0.05]]'.
    """
    if v is None:
        return DEFAULT_TAX_SLABS
    if isinstance(v, str):
        s = v.strip()
        if not s:
            return DEFAULT_TAX_SLABS
        try:
            v = json.loads(s)
        except json.JSONDecodeError as e:
            raise ValueError(f"TAX_SLABS must be a JSON list of [threshold, rate] pairs: {e}")
    slabs = []
    for pair in v:
        if not isinstance(pair, (list, tuple)) or len(pair) != 2:
            raise ValueError(f"invalid tax slab: {pair!r}")
        slabs.append((float(pair[0]), float(pair[1])))
    return tuple(slabs)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",   # ignore unknown env keys instead of raising
    )

    # --- API ---
    api_host: str = Field(default="127.0.0.1", validation_alias=AliasChoices("API_HOST",))
    api_port: int = Field(default=8000,        validation_alias=AliasChoices("API_PORT",))
    cors_origins_raw: Optional[str | List[str]] = Field(
        default=None, validation_alias=AliasChoices("CORS_ORIGINS",)
    )
    log_level: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL",))

    # --- Firebase ---
    firebase_project_id: str = Field(
        default="nexura",
        validation_alias=AliasChoices("FIREBASE_PROJECT_ID",)
    )
    google_application_credentials: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("GOOGLE_APPLICATION_CREDENTIALS",)
    )
    firebase_storage_bucket: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FIREBASE_STORAGE_BUCKET", "STORAGE_BUCKET")
    )

    # --- Pricing ---
    express_shipping_surcharge: float = Field(
        default=250.0, ge=0,
        validation_alias=AliasChoices("EXPRESS_SHIPPING_SURCHARGE",)
    )
    tax_slabs_raw: Optional[str | List[List[float]]] = Field(
        default=None, validation_alias=AliasChoices("TAX_SLABS",)
    )

    # --- Fan-out lookups (favorites, checkout) ---
    fanout_workers: int = Field(
        default=8, ge=1, validation_alias=AliasChoices("FANOUT_WORKERS",)
    )

    @property
    def cors_origins(self) -> List[str]:
        return _parse_cors(self.cors_origins_raw)

    @property
    def tax_slabs(self) -> Tuple[Tuple[float, float], ...]:
        return _parse_slabs(self.tax_slabs_raw)

    def pricing_config(self) -> PricingConfig:
        return PricingConfig(
            tax_slabs=self.tax_slabs,
            express_surcharge=self.express_shipping_surcharge,
        )

# singleton
settings = Settings()

# Make sure GOOGLE_APPLICATION_CREDENTIALS is exported for firebase_admin
if settings.google_application_credentials:
    os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = settings.google_application_credentials
