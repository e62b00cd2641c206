"""
Local Preferences Store

Keeps the few UI preferences that survive a restart on this device:
view mode, view scope, "my member name", the dark-mode flag and the
signed-in token/user pair. No financial data is ever written here.

DESIGN DECISION: Each key is read independently. A bad value for one
key falls back to its default without discarding the others.
"""

import json
from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from spend_tracker.models.account import AuthResult
from spend_tracker.models.view import ViewMode, ViewScope

logger = structlog.get_logger(__name__)


class Preferences(BaseModel):
    """Preferences restored at startup."""
    model_config = ConfigDict(frozen=True, extra="ignore")

    view_mode: ViewMode = ViewMode.MONTH
    view_scope: ViewScope = ViewScope.HOUSEHOLD
    my_member_name: str = Field(
        default="",
        description="The roster name the user identifies as"
    )
    dark_mode: bool = False
    auth: Optional[AuthResult] = None


class PreferencesStore:
    """JSON file holding one Preferences object."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> Preferences:
        """Read preferences, keeping every key that is still valid."""
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return Preferences()
        except (OSError, ValueError) as e:
            logger.warning("preferences_unreadable", path=str(self.path), error=str(e))
            return Preferences()

        if not isinstance(raw, dict):
            logger.warning("preferences_unreadable", path=str(self.path), error="not an object")
            return Preferences()

        valid: dict[str, Any] = {}
        for key in Preferences.model_fields:
            if key not in raw:
                continue
            try:
                Preferences.model_validate({key: raw[key]})
            except ValidationError:
                logger.warning("preference_ignored", key=key)
                continue
            valid[key] = raw[key]
        return Preferences.model_validate(valid)

    def save(self, preferences: Preferences) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(preferences.model_dump_json(indent=2), encoding="utf-8")

    def update(self, **changes: Any) -> Preferences:
        """Load, apply ``changes``, save and return the result."""
        updated = Preferences.model_validate(
            {**self.load().model_dump(), **changes}
        )
        self.save(updated)
        return updated
