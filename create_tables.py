from cloud_variables.core.config import Settings
from cloud_variables.db.base import Base
from cloud_variables.db.session import create_db_engine, create_session_factory
from cloud_variables.models import *  # noqa: F401,F403 - register all models
from cloud_variables.services.tier_service import TierService

settings = Settings.from_env()
engine = create_db_engine(settings.database_url)

print("Creating database tables...")
Base.metadata.create_all(bind=engine)
print("✅ All tables created successfully!")

db = create_session_factory(engine)()
try:
    seeded = TierService(db, settings.default_tier_name).seed_default_tiers()
    print(f"✅ Seeded {seeded} default tiers" if seeded else "Tiers already present, nothing seeded")
finally:
    db.close()
