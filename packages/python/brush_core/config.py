from pydantic_settings import BaseSettings, SettingsConfigDict


TABLE_SIGNALS = "learning_signals"
TABLE_PREFS = "user_preferences"
TABLE_ARTWORKS = "artworks"

QDRANT_ARTWORK_COLLECTION_NAME = "artworks_preference_vectors"
QDRANT_ARTIST_COLLECTION_NAME = "artists_preference_vectors"
QDRANT_CATALOGUE_COLLECTION_NAME = "catalogues_preference_vectors"

LOOKBACK_DAYS = 90
DECAY_DAYS = 30.0  # exp(-age/30): a month-old signal keeps ~37%
MATCH_THRESHOLD = 0.7
MATCH_COUNT = 20


class LearningSettings(BaseSettings):
    app_name: str = "Brush Learning Worker"
    supabase_url: str = ""
    supabase_api_key: str = ""

    lookback_days: int = LOOKBACK_DAYS
    decay_days: float = DECAY_DAYS
    batch_concurrency: int = 4
    nightly_run_at: str = "03:00"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")
