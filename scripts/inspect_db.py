import sqlite3, os, sys

ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, ROOT)

from core.config import Config

DB = sys.argv[1] if len(sys.argv) > 1 else Config.DB_PATH
print('DB:', DB, 'exists:', os.path.exists(DB))
if not os.path.exists(DB):
    sys.exit(1)

con = sqlite3.connect(DB)
cur = con.cursor()
cur.execute("SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%' ORDER BY name")
tables = [r[0] for r in cur.fetchall()]
for table in tables:
    cur.execute(f'SELECT COUNT(*) FROM "{table}"')
    count = cur.fetchone()[0]
    cur.execute(f"PRAGMA table_info('{table}')")
    cols = [r[1] for r in cur.fetchall()]
    print(f'{table}: {count} rows')
    print('   cols:', cols)

if 'orthodontic_patients' in tables:
    cur.execute("SELECT patient_id, name, treatment_cycle, treatment_status, current_contract_price, current_balance FROM orthodontic_patients ORDER BY patient_id DESC LIMIT 10")
    for r in cur.fetchall():
        print(r)
con.close()
