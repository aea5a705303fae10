import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
SKU = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Recent Orders ===")
cur.execute(
    "SELECT id, order_number, customer_name, status, payment_status, total_amount, created_at FROM orders ORDER BY created_at DESC LIMIT 20"
)
for r in cur.fetchall():
    print(r)

print("\n=== Recent Purchases ===")
cur.execute(
    "SELECT id, supplier_name, total_amount, purchase_date FROM purchases ORDER BY created_at DESC LIMIT 20"
)
for r in cur.fetchall():
    print(r)

print("\n=== Aggregate stock drift (products whose stock != sum of variant stock) ===")
cur.execute(
    """
    SELECT p.id, p.sku, p.stock_quantity, SUM(v.stock_quantity)
    FROM products p JOIN product_variants v ON v.product_id = p.id
    GROUP BY p.id HAVING p.stock_quantity != SUM(v.stock_quantity)
    """
)
rows = cur.fetchall()
for r in rows:
    print(r)
if not rows:
    print("none")

if SKU:
    print(f"\n=== Stock for SKU={SKU} ===")
    cur.execute("SELECT id, sku, name, stock_quantity, buy_price, sell_price FROM products WHERE sku=?", (SKU,))
    for r in cur.fetchall():
        print(r)
        cur2 = conn.cursor()
        cur2.execute(
            "SELECT id, sku, name, stock_quantity, buy_price, sell_price FROM product_variants WHERE product_id=? ORDER BY position",
            (r[0],),
        )
        for v in cur2.fetchall():
            print("   ", v)

conn.close()
