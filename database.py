# database.py
from sqlalchemy import create_engine, Column, Text, Boolean, BigInteger, DateTime
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.sql import func

from config import DATABASE_URL


def _engine_options(url: str) -> dict:
    """SQLite connections are shared with the sweeper thread, so relax the thread check."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False, "timeout": 30}}
    return {"pool_pre_ping": True}


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

# ─────────── MODELS ───────────
class User(Base):
    """Profile record written by the sign-up flow. Only the admin flag matters here."""
    __tablename__ = "users"
    id = Column(Text, primary_key=True, index=True)
    email = Column(Text, nullable=True)
    display_name = Column(Text, nullable=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

class Subscription(Base):
    __tablename__ = "subscriptions"
    user_id = Column(Text, primary_key=True, index=True)
    plan_id = Column(Text, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

class DownloadToken(Base):
    __tablename__ = "download_tokens"
    token = Column(Text, primary_key=True)
    user_id = Column(Text, nullable=False, index=True)
    content_id = Column(Text, nullable=False)
    content_type = Column(Text, nullable=True)
    stream_url = Column(Text, nullable=False)
    title = Column(Text, nullable=False)
    # milliseconds since the epoch
    expires_at = Column(BigInteger, nullable=False, index=True)
    used = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


def init_db(bind=None):
    """Creates all tables if they don't exist."""
    Base.metadata.create_all(bind=bind or engine)

# ─────────── Session dependency ───────────
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
