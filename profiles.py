from __future__ import annotations
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List
from pydantic import ValidationError
from models import AppState
from storage import data_path, load_json, save_json

logger = logging.getLogger(__name__)

PROFILES_FILENAME = "profiles.json"


def _sanitize_profile_name(name: str) -> str:
    safe = re.sub(r"[^A-Za-z0-9_-]+", "_", name.strip())
    safe = safe.strip("_") or "default"
    return safe[:80]


def _profile_path(profile_name: str) -> Path:
    safe = _sanitize_profile_name(profile_name)
    return data_path(f"state__{safe}.json")


def _save_profiles_list(profiles: List[str]) -> None:
    save_json(data_path(PROFILES_FILENAME), {"profiles": profiles})


def list_profiles() -> List[str]:
    data = load_json(data_path(PROFILES_FILENAME), {"profiles": []})
    profiles: List[str] = [p for p in data.get("profiles", []) if isinstance(p, str)]

    # Pick up profile files on disk that are missing from the list
    known = {_sanitize_profile_name(p) for p in profiles}
    discovered = []
    for path in sorted(data_path("").glob("state__*.json")):
        suffix = path.stem.replace("state__", "", 1)
        if suffix and suffix not in known:
            discovered.append(suffix)

    combined = []
    for name in profiles + discovered:
        if name and name not in combined:
            combined.append(name)

    if not combined:
        combined = ["default"]
        _save_profiles_list(combined)

    return combined


def load_profile(profile_name: str) -> AppState:
    default_state = AppState(profile=profile_name)
    raw = load_json(_profile_path(profile_name), default_state.model_dump(mode="json"))
    try:
        state = AppState.model_validate(raw)
    except ValidationError as e:
        logger.warning("Profile %r failed validation, resetting: %s", profile_name, e)
        state = default_state
        save_profile(profile_name, state)
    state.profile = profile_name

    profiles = list_profiles()
    if profile_name not in profiles:
        profiles.append(profile_name)
        _save_profiles_list(profiles)

    return state


def save_profile(profile_name: str, state: AppState) -> None:
    state.profile = profile_name
    # Register the name before the file exists so discovery does not list it twice
    profiles = list_profiles()
    if profile_name not in profiles:
        profiles.append(profile_name)
        _save_profiles_list(profiles)
    save_json(_profile_path(profile_name), state.model_dump(mode="json"))


def create_profile(profile_name: str) -> AppState:
    name = profile_name.strip()
    if not name:
        raise ValueError("Profile name cannot be empty.")

    profiles = list_profiles()
    if any(p.lower() == name.lower() for p in profiles):
        raise ValueError("Profile already exists.")

    path = _profile_path(name)
    if path.exists():
        raise ValueError("A profile with that name already exists on disk.")

    state = AppState(profile=name)
    save_profile(name, state)
    return state


def delete_profile(profile_name: str) -> None:
    path = _profile_path(profile_name)
    try:
        path.unlink()
    except FileNotFoundError:
        pass

    profiles = [p for p in list_profiles() if p != profile_name]
    if not profiles:
        profiles = ["default"]
        save_profile("default", AppState(profile="default"))
    _save_profiles_list(profiles)


def export_state(state: AppState) -> Dict[str, Any]:
    payload = state.model_dump(mode="json")
    payload["export_date"] = datetime.now().isoformat()
    return payload


def import_state(state: AppState, payload: Dict[str, Any]) -> AppState:
    """
    Replace the sections present in `payload`; sections it lacks are kept.
    Raises pydantic.ValidationError when the payload does not fit.
    """
    merged = state.model_dump(mode="json")
    for key in ("subjects", "sessions", "progress", "preferences", "schedules"):
        if payload.get(key) is not None:
            merged[key] = payload[key]
    imported = AppState.model_validate(merged)
    imported.profile = state.profile
    return imported
