"""
Central location for constant values and tables used across the application.
"""

MINUTES_PER_DAY = 1440

# mg/dL per mmol/L
MGDL_PER_MMOL = 18.018

DEFAULT_ROUNDING_STEP = 0.5
ROUNDING_STEPS = (0.05, 0.1, 0.5, 1.0)

# Safety thresholds on measured glucose (mg/dL)
SEVERE_LOW_BELOW_MGDL = 56
LOW_BELOW_MGDL = 70
HIGH_ABOVE_MGDL = 249

# Values quoted in the banners
SEVERE_LOW_BANNER_MGDL = 55
LOW_BANNER_MGDL = 70
HIGH_BANNER_MGDL = 250

# Manual trend selector
# Format: (adjustment_mgdl, label)
TREND_PRESETS = (
    (-75, "Rapidly falling"),
    (-50, "Falling"),
    (-25, "Slowly falling"),
    (0, "Steady"),
    (25, "Slowly rising"),
    (50, "Rising"),
    (75, "Rapidly rising"),
)

# Windows given to the legacy Day/Night presets ("HH:MM")
DAY_WINDOW = ("06:00", "20:00")
NIGHT_WINDOW = ("20:00", "06:00")

# Key-value store keys
KEY_PROFILES = "ic_profiles"
KEY_SETTINGS = "ic_settings"
KEY_ACTIVE_PROFILE = "ic_activeProfileId"
LEGACY_KEY_DAY = "preset_day"
LEGACY_KEY_NIGHT = "preset_night"
