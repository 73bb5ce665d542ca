import argparse, json, os
from typing import Any, Dict, List

from storefront.services.products import ProductRepository, normalize_categories


def load_products(path: str) -> List[Dict[str, Any]]:
    """Read every .json file under `path`; each holds one product or a list of them."""
    products = []
    for root, _, files in os.walk(path):
        for fname in sorted(files):
            if not fname.lower().endswith('.json'):
                continue
            fp = os.path.join(root, fname)
            with open(fp, 'r', encoding='utf-8') as f:
                data = json.load(f)
            rows = data if isinstance(data, list) else [data]
            products.extend(r for r in rows if isinstance(r, dict))
    return products


def seed(products: List[Dict[str, Any]], repo: ProductRepository) -> int:
    count = 0
    for p in products:
        p = dict(p, categories=normalize_categories(p))
        try:
            repo.create_product(p)
        except ValueError as e:
            print(f"skipped {p.get('id') or p.get('name')!r}: {e}")
            continue
        count += 1
    return count


if __name__ == "__main__":
    ap = argparse.ArgumentParser()
    ap.add_argument('--path', required=True, help='Folder containing product .json files')
    args = ap.parse_args()

    from storefront.services.firebase import ensure_firestore
    n = seed(load_products(args.path), ProductRepository(ensure_firestore()))
    print(f"Seeded {n} products")
