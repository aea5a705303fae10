import argparse
import concurrent.futures
import json
import os

import requests

BASE = os.environ.get("SHOPLEDGER_BASE", "http://127.0.0.1:8000")


def login(email, password):
    r = requests.post(f"{BASE}/api/auth/login", json={"email": email, "password": password}, timeout=10)
    r.raise_for_status()
    return r.json()["token"]


def sale_task(i, token, payload):
    headers = {"Content-Type": "application/json", "Authorization": f"Bearer {token}"}
    try:
        r = requests.post(f"{BASE}/api/sales", json=payload, headers=headers, timeout=20)
        return (i, r.status_code, r.text)
    except Exception as e:
        return (i, "ERR", str(e))


def stock_of(product_id):
    r = requests.get(f"{BASE}/api/products/{product_id}", timeout=10)
    r.raise_for_status()
    return r.json()["data"]["stock_quantity"]


def run_sales_concurrent(workers, token, product_id, variant_id, qty):
    """
    Fire `workers` sales at the same product at once. With stock S and qty q,
    at most S // q should succeed and stock must never go below zero.
    """
    before = stock_of(product_id)
    print(f"Running sales test: workers={workers}, product={product_id}, variant={variant_id}, qty={qty}, stock={before}")
    payload = {
        "customer_name": "Concurrency Check",
        "items": [{"product_id": product_id, "variant_id": variant_id, "quantity": qty}],
    }
    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as ex:
        futures = [ex.submit(sale_task, i, token, payload) for i in range(workers)]
        results = [f.result() for f in futures]
    for r in results:
        print(r[0], r[1], r[2][:160])
    ok = [json.loads(r[2])["data"]["order_number"] for r in results if r[1] == 201]
    after = stock_of(product_id)
    print("Successful sales:", len(ok), "expected at most", before // qty)
    print("Unique order numbers:", len(set(ok)) == len(ok))
    print("Stock before/after:", before, after)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fire concurrent sales (oversell / order-number races).")
    parser.add_argument("--email", default="admin@shop.local")
    parser.add_argument("--password", default="admin-change-me")
    parser.add_argument("--product", type=int, required=True)
    parser.add_argument("--variant", type=int, default=None)
    parser.add_argument("--qty", type=int, default=1)
    parser.add_argument("--workers", type=int, default=8)
    args = parser.parse_args()

    tok = login(args.email, args.password)
    run_sales_concurrent(args.workers, tok, args.product, args.variant, args.qty)
