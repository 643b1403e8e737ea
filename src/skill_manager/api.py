"""Operations exposed to the UI layer.

Every function here returns an `OperationResult`; nothing raises across this
boundary. Errors come back as human-readable strings in `result.error`.

`invoke` is the dispatch shim a desktop bridge calls with a command name and
the arguments as the frontend sends them (``id``, ``global``, camelCase
keys such as ``autoConfirm``, ...).
"""

import asyncio
import inspect
import re
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set, Union

from .config import Settings, load_settings
from .errors import InvalidRequestError, SkillManagerError
from .ledger import SourceLedger
from .log import get_logger
from .orchestrator import SkillOrchestrator
from .scanner import list_global_skills as scan_global_skills
from .scanner import scan_local_skills

logger = get_logger(__name__)


@dataclass
class OperationResult:
    ok: bool
    value: Any = None
    error: Optional[str] = None

    @classmethod
    def success(cls, value: Any) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "OperationResult":
        return cls(ok=False, error=error)

    def to_dict(self) -> Dict[str, Any]:
        value = self.value
        if isinstance(value, list):
            value = [item.to_dict() if hasattr(item, "to_dict") else item for item in value]
        if self.ok:
            return {"ok": True, "value": value}
        return {"ok": False, "error": self.error}


def _failure(operation: str, error: Exception) -> OperationResult:
    logger.warning("%s failed: %s", operation, error)
    return OperationResult.failure(str(error))


def _settings(settings: Optional[Settings]) -> Settings:
    return settings if settings is not None else load_settings()


def _orchestrator(settings: Settings) -> SkillOrchestrator:
    home = settings.resolve_home()
    return SkillOrchestrator(
        registry=settings.registry(),
        ledger=SourceLedger(settings.ledger_file(home)),
        home=home,
        tool=settings.tool,
    )


# =============================================================================
# Scans
# =============================================================================

def get_local_skills(settings: Optional[Settings] = None) -> OperationResult:
    """All skills installed for every known agent."""
    try:
        settings = _settings(settings)
        home = settings.resolve_home()
        skills = scan_local_skills(
            settings.registry(),
            home,
            ledger=SourceLedger(settings.ledger_file(home)),
            metadata_filename=settings.metadata_file,
        )
    except (SkillManagerError, OSError) as e:
        return _failure("get_local_skills", e)
    return OperationResult.success(skills)


def list_global_skills(settings: Optional[Settings] = None) -> OperationResult:
    """Skills in the shared global directory and which agents link to them."""
    try:
        settings = _settings(settings)
        skills = scan_global_skills(
            settings.registry(),
            settings.resolve_home(),
            global_dir=settings.global_dir,
            metadata_filename=settings.metadata_file,
        )
    except (SkillManagerError, OSError) as e:
        return _failure("list_global_skills", e)
    return OperationResult.success(skills)


def get_skill_sources(settings: Optional[Settings] = None) -> OperationResult:
    """The whole source ledger as a dict."""
    try:
        settings = _settings(settings)
        entries = SourceLedger(settings.ledger_file()).entries()
    except (SkillManagerError, OSError) as e:
        return _failure("get_skill_sources", e)
    return OperationResult.success(entries)


# =============================================================================
# Install / Remove
# =============================================================================

async def install_skill(
    source: str,
    skill: Optional[str] = None,
    global_: bool = False,
    agents: Sequence[str] = (),
    auto_confirm: bool = False,
    settings: Optional[Settings] = None,
) -> OperationResult:
    try:
        message = await _orchestrator(_settings(settings)).install(
            source, skill=skill, global_=global_, agents=agents, auto_confirm=auto_confirm
        )
    except (SkillManagerError, OSError) as e:
        return _failure("install_skill", e)
    return OperationResult.success(message)


def uninstall_skill(
    skill_id: str,
    agents: Sequence[str],
    settings: Optional[Settings] = None,
) -> OperationResult:
    try:
        message = _orchestrator(_settings(settings)).uninstall(skill_id, agents)
    except (SkillManagerError, OSError) as e:
        return _failure("uninstall_skill", e)
    return OperationResult.success(message)


async def remove_skills(
    skill_ids: Sequence[str] = (),
    global_: bool = False,
    agents: Sequence[str] = (),
    remove_all: bool = False,
    auto_confirm: bool = False,
    settings: Optional[Settings] = None,
) -> OperationResult:
    try:
        message = await _orchestrator(_settings(settings)).remove(
            skill_ids,
            global_=global_,
            agents=agents,
            remove_all=remove_all,
            auto_confirm=auto_confirm,
        )
    except (SkillManagerError, OSError) as e:
        return _failure("remove_skills", e)
    return OperationResult.success(message)


async def remove_global_skill(skill_id: str, settings: Optional[Settings] = None) -> OperationResult:
    try:
        message = await _orchestrator(_settings(settings)).remove_global(skill_id)
    except (SkillManagerError, OSError) as e:
        return _failure("remove_global_skill", e)
    return OperationResult.success(message)


# =============================================================================
# Command Registration
# =============================================================================

Handler = Callable[..., Union[OperationResult, Awaitable[OperationResult]]]

COMMANDS: Dict[str, Handler] = {
    "get_local_skills": get_local_skills,
    "list_global_skills": list_global_skills,
    "get_skill_sources": get_skill_sources,
    "install_skill": install_skill,
    "uninstall_skill": uninstall_skill,
    "remove_skills": remove_skills,
    "remove_global_skill": remove_global_skill,
}

# Frontend argument names (after camelCase -> snake_case) -> Python parameter names
_ARG_ALIASES: Dict[str, Dict[str, str]] = {
    "install_skill": {"id": "source", "global": "global_"},
    "uninstall_skill": {"id": "skill_id"},
    "remove_skills": {"global": "global_"},
    "remove_global_skill": {"id": "skill_id"},
}

# Sent by the frontend but with no effect here; the tool decides how to link
_IGNORED_ARGS: Dict[str, Set[str]] = {
    "install_skill": {"install_mode"},
}

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _snake_case(key: str) -> str:
    """``autoConfirm`` -> ``auto_confirm``; snake_case keys pass through."""
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _bind_args(name: str, handler: Handler, args: Dict[str, Any]) -> Dict[str, Any]:
    aliases = _ARG_ALIASES.get(name, {})
    ignored = _IGNORED_ARGS.get(name, set())
    kwargs = {}
    for key, value in args.items():
        key = _snake_case(key)
        if key in ignored:
            logger.debug("Ignoring argument %s for %s", key, name)
            continue
        kwargs[aliases.get(key, key)] = value
    params = inspect.signature(handler).parameters
    unknown = sorted(key for key in kwargs if key not in params or key == "settings")
    if unknown:
        raise InvalidRequestError(f"Unexpected arguments for {name}: {', '.join(unknown)}")
    missing = [
        key for key, param in params.items()
        if param.default is inspect.Parameter.empty and key not in kwargs
    ]
    if missing:
        raise InvalidRequestError(f"Missing arguments for {name}: {', '.join(missing)}")
    return kwargs


async def invoke_async(
    name: str,
    args: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> OperationResult:
    """Run a registered command by name."""
    handler = COMMANDS.get(name)
    if handler is None:
        return OperationResult.failure(f"Unknown command: {name}")
    try:
        kwargs = _bind_args(name, handler, args or {})
    except InvalidRequestError as e:
        return OperationResult.failure(str(e))

    result = handler(**kwargs, settings=settings)
    if inspect.isawaitable(result):
        result = await result
    return result


def invoke(
    name: str,
    args: Optional[Dict[str, Any]] = None,
    settings: Optional[Settings] = None,
) -> OperationResult:
    """Blocking wrapper around `invoke_async` for synchronous callers."""
    return asyncio.run(invoke_async(name, args, settings))


def command_names() -> List[str]:
    return list(COMMANDS)
