import json
import os
import logging
from typing import Dict, Any, Optional

from venue_booking.core.config import settings

logger = logging.getLogger("venue_booking")

def load_venue_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Loads venue configuration from JSON file.
    Raises FileNotFoundError if config is missing.
    Returns: Dict containing config.
    """
    config_path = path or settings.VENUE_CONFIG_PATH

    if not os.path.exists(config_path):
        logger.critical(f"❌ Venue config '{config_path}' not found! The application cannot start.")
        raise FileNotFoundError(f"Configuration file not found at {config_path}")

    try:
        with open(config_path, 'r', encoding='utf-8') as f:
            config = json.load(f)
            logger.info(f"✅ Config loaded for: {config.get('venue_name', 'Unknown')}")
            return config
    except json.JSONDecodeError as e:
        logger.critical(f"❌ Invalid JSON in venue config: {e}")
        raise ValueError(f"Invalid JSON in config file: {e}")

def get_notification_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Helper to get the notifications block.
    Returns: Dict like {'email_enabled': True, 'rejection_subject': '...'}; empty if absent.
    """
    return config.get("notifications", {})
