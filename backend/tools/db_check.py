import json
import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
KEY = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Checkout ledger ===")
if KEY:
    cur.execute(
        "SELECT id, key, status, response_body, last_error, created_at, updated_at FROM idempotency_records WHERE key=?",
        (KEY,),
    )
else:
    cur.execute(
        "SELECT id, key, status, response_body, last_error, created_at, updated_at FROM idempotency_records ORDER BY created_at DESC LIMIT 20"
    )
for r in cur.fetchall():
    rb = r[3] or "NULL"
    try:
        rb = json.loads(rb) if isinstance(rb, str) else rb
    except ValueError:
        pass
    print(
        {
            "id": r[0],
            "key": r[1],
            "status": r[2],
            "response_body": rb,
            "last_error": r[4],
            "created_at": r[5],
            "updated_at": r[6],
        }
    )

print("\n=== Captured but unsettled ===")
cur.execute(
    "SELECT key, status, response_body FROM idempotency_records WHERE status IN ('IN_PROGRESS', 'FAILED') ORDER BY updated_at"
)
for key, status, body in cur.fetchall():
    body = json.loads(body) if body else {}
    if body.get("payment_result") and not body.get("refund_result"):
        print(key, status, body["payment_result"].get("charge_id"), body["payment_result"].get("amount"))

print("\n=== Recent Orders ===")
cur.execute("SELECT id, user_id, total, charge, created_at FROM orders ORDER BY created_at DESC LIMIT 20")
for r in cur.fetchall():
    print(r)

conn.close()
