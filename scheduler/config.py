"""Runtime settings, overridable via HAZARDS_* environment variables."""
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Pass intervals (seconds)
    TRAJECTORY_INTERVAL_S: float = 30.0
    PROXIMITY_INTERVAL_S: float = 15.0
    DAMAGE_INTERVAL_S: float = 15.0
    SHIELD_BREAKER_INTERVAL_S: float = 15.0
    LIFECYCLE_INTERVAL_S: float = 30.0
    LOOT_SPAWN_INTERVAL_S: float = 60.0
    LOOT_SPAWN_ENABLED: bool = True

    # Trajectory
    TRAJECTORY_BATCH_SIZE: int = 100
    HOLDING_DISTANCE_KM: float = 1.0
    HOLDING_RADIUS_KM: float = 0.5
    HOLDING_PERIOD_S: float = 10.0

    # Proximity alerts
    MISSILE_ALERT_BUFFER_KM: float = 0.5
    LANDMINE_ALERT_KM: float = 0.05
    LOOT_NEARBY_KM: float = 0.5
    LOOT_COLLECT_KM: float = 0.05

    # Damage
    LANDMINE_TRIGGER_M: float = 10.0
    DAMAGE_DELAY_S: float = 30.0
    DEDUP_HORIZON_S: float = 300.0
    ACTIVE_PLAYER_WINDOW_H: float = 168.0

    # Lifecycle
    DEFAULT_FALLOUT_MIN: float = 30.0

    RNG_SEED: Optional[int] = None
    EVENT_LOG_CAPACITY: int = 100_000

    # Ops API
    HOST: str = "0.0.0.0"
    PORT: int = 8095
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="HAZARDS_", env_file=".env", extra="ignore")

settings = Settings()
