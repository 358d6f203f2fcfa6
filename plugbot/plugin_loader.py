"""
Plugin loader for discovering command, event, and job modules.
"""

import hashlib
import importlib.util
import inspect
import logging
import sys
from pathlib import Path
from types import ModuleType
from typing import Optional, Sequence, TypeVar, Union

from .models import Command, Event, Job

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
Unit = TypeVar("Unit", Command, Event, Job)

DEFAULT_EXTENSIONS = (".py",)
EXCLUDED_DIRS = {'__pycache__', '.git', '.venv', '.tmp'}


def normalize_dirs(dirs: Union[PathLike, Sequence[PathLike], None]) -> list[Path]:
    """Resolve one or many directories, dropping duplicates but keeping order."""
    if dirs is None:
        return []
    if isinstance(dirs, (str, Path)):
        dirs = [dirs]

    resolved: list[Path] = []
    for item in dirs:
        path = Path(item).resolve()
        if path not in resolved:
            resolved.append(path)
    return resolved


class PluginLoader:
    """
    Discovers and loads Command, Event, and Job implementations.

    Every directory named like the configured folder (e.g. "commands")
    anywhere under base_dir is searched, together with any explicitly
    configured directories. Each accepted file must expose one of:
    - a module attribute named `default`
    - a class named `Command` / `Event` / `Job`
    - exactly one subclass of the matching base class
    that can be instantiated without arguments.
    """

    def __init__(
        self,
        base_dir: PathLike,
        commands_dir: Union[PathLike, Sequence[PathLike], None] = None,
        events_dir: Union[PathLike, Sequence[PathLike], None] = None,
        jobs_dir: Union[PathLike, Sequence[PathLike], None] = None,
        commands_folder_name: str = "commands",
        events_folder_name: str = "events",
        jobs_folder_name: str = "jobs",
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
    ):
        self.base_dir = Path(base_dir).resolve()
        self.commands_folder_name = commands_folder_name
        self.events_folder_name = events_folder_name
        self.jobs_folder_name = jobs_folder_name
        self.commands_dirs = normalize_dirs(
            commands_dir if commands_dir is not None else self.base_dir / commands_folder_name
        )
        self.events_dirs = normalize_dirs(
            events_dir if events_dir is not None else self.base_dir / events_folder_name
        )
        self.jobs_dirs = normalize_dirs(
            jobs_dir if jobs_dir is not None else self.base_dir / jobs_folder_name
        )
        self.extensions = tuple(extensions)
        self.excluded_dirs = set(EXCLUDED_DIRS)
        self.default_dirs = {
            (self.base_dir / name).resolve()
            for name, explicit in (
                (commands_folder_name, commands_dir),
                (events_folder_name, events_dir),
                (jobs_folder_name, jobs_dir),
            )
            if explicit is None
        }

        self._events_dirs_resolved = False
        self._jobs_dirs_resolved = False

        self.commands: dict[str, Command] = {}
        self.events: dict[str, Event] = {}
        self.jobs: dict[str, Job] = {}

    # ------------------------------------------------------------------
    # Directory discovery
    # ------------------------------------------------------------------

    def discover_directories(self, folder_name: str) -> list[Path]:
        """
        Find every directory named folder_name under base_dir.

        Walks with an explicit stack. Directories that cannot be listed are
        treated as absent. Each real directory is walked once, so symlink
        cycles terminate.
        """
        stack = [self.base_dir]
        visited = {self.base_dir}
        discovered: list[Path] = []

        while stack:
            current = stack.pop()
            try:
                entries = sorted(current.iterdir())
            except OSError:
                continue

            for entry in entries:
                try:
                    if not entry.is_dir():
                        continue
                except OSError:
                    continue
                if entry.name in self.excluded_dirs or entry.name.startswith('.'):
                    continue

                resolved = entry.resolve()
                if entry.name == folder_name and resolved not in discovered:
                    discovered.append(resolved)
                    logger.debug(f"Discovered {folder_name} directory: {resolved}")

                if resolved not in visited:
                    visited.add(resolved)
                    stack.append(entry)

        return discovered

    def get_command_directories(self) -> list[Path]:
        discovered = self.discover_directories(self.commands_folder_name)
        return normalize_dirs([*self.commands_dirs, *discovered])

    def get_event_directories(self) -> list[Path]:
        if not self._events_dirs_resolved:
            discovered = self.discover_directories(self.events_folder_name)
            self.events_dirs = normalize_dirs([*self.events_dirs, *discovered])
            self._events_dirs_resolved = True
        return self.events_dirs

    def get_job_directories(self) -> list[Path]:
        if not self._jobs_dirs_resolved:
            discovered = self.discover_directories(self.jobs_folder_name)
            self.jobs_dirs = normalize_dirs([*self.jobs_dirs, *discovered])
            self._jobs_dirs_resolved = True
        return self.jobs_dirs

    # ------------------------------------------------------------------
    # File enumeration
    # ------------------------------------------------------------------

    def is_valid_file(self, path: Path) -> bool:
        """Accepted extension, not a stub, not a private module."""
        if path.suffix == ".pyi" or path.name.startswith('_'):
            return False
        return path.suffix in self.extensions

    def get_files(self, directory: Path) -> list[Path]:
        """
        Recursively list plugin files under directory.

        Raises:
            OSError: If directory itself cannot be listed
        """
        files: list[Path] = []
        stack = [directory]
        visited = {directory.resolve()}
        first = True

        while stack:
            current = stack.pop()
            try:
                entries = sorted(current.iterdir())
            except OSError:
                if first:
                    raise
                continue
            first = False

            for entry in entries:
                if entry.is_dir():
                    if entry.name in self.excluded_dirs or entry.name.startswith('.'):
                        continue
                    resolved = entry.resolve()
                    if resolved not in visited:
                        visited.add(resolved)
                        stack.append(entry)
                elif entry.is_file() and self.is_valid_file(entry):
                    files.append(entry)

        return sorted(files)

    # ------------------------------------------------------------------
    # Module loading
    # ------------------------------------------------------------------

    def import_file(self, path: Path, kind: str) -> ModuleType:
        """Import a plugin file under a unique synthetic module name."""
        digest = hashlib.sha1(str(path.resolve()).encode()).hexdigest()[:10]
        module_name = f"plugbot_plugin_{kind}_{path.stem}_{digest}"

        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"Cannot create import spec for {path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise
        return module

    def resolve_constructor(self, module: ModuleType, base: type, conventional: str):
        """
        Find the plugin constructor exported by a module.

        Returns:
            The exported object (not yet checked to be a class), or None
        """
        for attr in ("default", conventional):
            candidate = getattr(module, attr, None)
            if candidate is not None and candidate is not base:
                return candidate

        local = [
            obj for obj in vars(module).values()
            if inspect.isclass(obj)
            and issubclass(obj, base)
            and obj is not base
            and obj.__module__ == module.__name__
            and not inspect.isabstract(obj)
        ]
        if len(local) == 1:
            return local[0]
        if len(local) > 1:
            names = ", ".join(cls.__name__ for cls in local)
            logger.warning(
                f"Several {base.__name__} classes in {module.__file__} ({names}); "
                f"export one as `default` or `{conventional}`"
            )
        return None

    def load_unit(self, path: Path, base: type[Unit], conventional: str) -> Optional[Unit]:
        """
        Load a single plugin file and instantiate its unit.

        Returns:
            The instance, or None if the file does not provide a usable plugin
        """
        kind = base.__name__.lower()
        module = self.import_file(path, kind)

        constructor = self.resolve_constructor(module, base, conventional)
        if constructor is None:
            logger.warning(f"No {kind} class found in {path}")
            return None

        if not inspect.isclass(constructor):
            logger.warning(f"{base.__name__} export is not a class in {path}")
            return None

        try:
            instance = constructor()
        except TypeError as e:
            logger.warning(f"Cannot instantiate {constructor.__name__} from {path}: {e}")
            return None

        if not isinstance(instance, base):
            logger.warning(f"{constructor.__name__} does not extend {base.__name__} in {path}")
            return None

        return instance

    def load_command(self, path: Path) -> Optional[Command]:
        return self.load_unit(path, Command, "Command")

    def load_event(self, path: Path) -> Optional[Event]:
        return self.load_unit(path, Event, "Event")

    def load_job(self, path: Path) -> Optional[Job]:
        return self.load_unit(path, Job, "Job")

    # ------------------------------------------------------------------
    # Bulk loading
    # ------------------------------------------------------------------

    def _load_kind(self, label: str, directories: list[Path], load_one, keyed_by_file: bool) -> dict:
        loaded = {}
        seen_files: set[Path] = set()

        if not directories:
            logger.warning(f"No {label} directories discovered")

        for directory in directories:
            try:
                files = self.get_files(directory)
            except OSError:
                if directory in self.default_dirs:
                    logger.debug(f"Default {label} directory absent: {directory}")
                else:
                    logger.warning(f"{label.capitalize()} directory not found or inaccessible: {directory}")
                continue

            for path in files:
                if path.resolve() in seen_files:
                    continue
                seen_files.add(path.resolve())

                try:
                    unit = load_one(path)
                except Exception:
                    logger.exception(f"Failed to load {label[:-1]} from {path}")
                    continue

                if unit is None:
                    continue

                key = f"{unit.name}:{path.resolve()}" if keyed_by_file else unit.name
                if key in loaded:
                    logger.warning(f"Duplicate {label[:-1]} '{unit.name}' in {path} replaces earlier definition")
                loaded[key] = unit
                logger.debug(f"Loaded {label[:-1]} '{unit.name}' from {path}")

        return loaded

    def load_commands(self) -> dict[str, Command]:
        """
        Load all commands.

        Returns:
            Dict mapping declared command names to Command instances
        """
        self.commands.update(
            self._load_kind("commands", self.get_command_directories(), self.load_command, False)
        )
        logger.info(f"Loaded {len(self.commands)} commands")
        return self.commands

    def load_events(self) -> dict[str, Event]:
        """
        Load all events.

        Returns:
            Dict mapping "<event name>:<file path>" to Event instances
        """
        self.events.update(
            self._load_kind("events", self.get_event_directories(), self.load_event, True)
        )
        logger.info(f"Loaded {len(self.events)} events")
        return self.events

    def load_jobs(self) -> dict[str, Job]:
        """
        Load all jobs.

        Returns:
            Dict mapping "<job tag>:<file path>" to Job instances
        """
        self.jobs.update(
            self._load_kind("jobs", self.get_job_directories(), self.load_job, True)
        )
        logger.info(f"Loaded {len(self.jobs)} jobs")
        return self.jobs

    def get_commands(self) -> dict[str, Command]:
        return self.commands

    def get_events(self) -> dict[str, Event]:
        return self.events

    def get_jobs(self) -> dict[str, Job]:
        return self.jobs

    def get_command(self, name: str) -> Optional[Command]:
        return self.commands.get(name)

    def get_event(self, key: str) -> Optional[Event]:
        return self.events.get(key)

    def get_job(self, key: str) -> Optional[Job]:
        return self.jobs.get(key)
