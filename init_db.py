from database import init_db
from config import DATABASE_URL

print(f"Initializing database at {DATABASE_URL}...")
try:
    init_db()
finally:
    print("Database initialization complete.")
