import logging
from datetime import datetime
from typing import Optional

from insulin_calc.core.logging import configure_logging
from insulin_calc.core.settings import get_settings
from insulin_calc.services.app_state import CalculatorApp
from insulin_calc.services.persistence import get_store
from insulin_calc.services.store import KeyValueStore
from insulin_calc.utils.timezone import now_minute_of_day

logger = logging.getLogger(__name__)


def create_app(store: Optional[KeyValueStore] = None, now: Optional[datetime] = None) -> CalculatorApp:
    """
    Entry point for a host shell: configures logging, opens the store and
    selects the profile for the current time of day.
    """
    configure_logging()
    get_settings()
    if store is None:
        store = get_store()
        logger.info("Using store: %s", store.path)

    app = CalculatorApp.initialize(store, now_minute_of_day(now))
    logger.info("Active profile: %s", app.active_profile.name)
    return app
