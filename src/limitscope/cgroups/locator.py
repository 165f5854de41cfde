"""cgroup version detection and controller file resolution.

cgroup v2 exposes one unified hierarchy; the process's place in it is the
``0::<path>`` line of /proc/self/cgroup. cgroup v1 mounts one hierarchy per
controller (or per comma-joined controller group), each with its own path
line in /proc/self/cgroup:

    12:memory:/docker/3f2a...
    4:cpu,cpuacct:/docker/3f2a...
    1:name=systemd:/docker/3f2a...
    0::/system.slice/app.service
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from limitscope.core.constants import (
    CGROUP_V2_MARKER,
    DEFAULT_CGROUP_ROOT,
    DEFAULT_PROC_ROOT,
    PROC_SELF_CGROUP,
)
from limitscope.core.exceptions import FileMissingError, UnreadableError
from limitscope.core.schemas import CgroupVersion
from limitscope.providers.files import FileReader

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ControllerMapping:
    """Where a cgroup v1 controller's hierarchy lives for this process."""

    mount_segment: str  # Directory under the cgroup root (e.g. "cpu,cpuacct")
    relative_path: str  # Process path inside that hierarchy (e.g. "/docker/<id>")


def _join(root: Path, *segments: str) -> Path:
    path = root
    for segment in segments:
        segment = segment.strip("/")
        if segment:
            path = path / segment
    return path


class CgroupLocator:
    """Detects the cgroup version and resolves controller file paths.

    Detection, v1 mappings and the v2 unified path are computed once and
    cached on the instance; ``reset()`` clears them.
    """

    def __init__(
        self,
        reader: FileReader | None = None,
        cgroup_root: Path | str = DEFAULT_CGROUP_ROOT,
        proc_root: Path | str = DEFAULT_PROC_ROOT,
    ) -> None:
        self._reader = reader or FileReader()
        self._cgroup_root = Path(cgroup_root)
        self._proc_self_cgroup = Path(proc_root) / PROC_SELF_CGROUP
        self._version: CgroupVersion | None = None
        self._mappings: dict[str, ControllerMapping] | None = None
        self._unified_path: str | None = None
        self._unified_resolved = False

    @property
    def cgroup_root(self) -> Path:
        return self._cgroup_root

    def reset(self) -> None:
        self._version = None
        self._mappings = None
        self._unified_path = None
        self._unified_resolved = False

    def detect(self) -> CgroupVersion:
        """Detect the cgroup version (V2 marker first, then the v1 process file)."""
        if self._version is not None:
            return self._version

        if self._reader.exists(self._cgroup_root / CGROUP_V2_MARKER):
            self._version = CgroupVersion.V2
        elif self._reader.exists(self._proc_self_cgroup):
            self._version = CgroupVersion.V1
        else:
            self._version = CgroupVersion.NONE

        logger.debug(f"Detected cgroup version: {self._version.value}")
        return self._version

    def _read_proc_self_cgroup(self) -> list[str] | None:
        """Lines of /proc/self/cgroup, None when the file does not exist.

        Raises:
            UnreadableError: If the file exists but cannot be read
        """
        try:
            return self._reader.read_lines(self._proc_self_cgroup)
        except FileMissingError:
            logger.debug(f"{self._proc_self_cgroup} not found")
            return None

    def unified_path(self) -> str | None:
        """Relative path of this process in the v2 unified hierarchy."""
        if self._unified_resolved:
            return self._unified_path

        lines = self._read_proc_self_cgroup() or []
        for line in lines:
            parts = line.strip().split(":", 2)
            if len(parts) == 3 and parts[0] == "0" and parts[1] == "":
                self._unified_path = parts[2]
                break

        self._unified_resolved = True
        logger.debug(f"Unified cgroup path: {self._unified_path!r}")
        return self._unified_path

    def controller_mappings(self) -> dict[str, ControllerMapping]:
        """Map every v1 controller named in /proc/self/cgroup to its hierarchy."""
        if self._mappings is not None:
            return self._mappings

        mappings: dict[str, ControllerMapping] = {}
        for line in self._read_proc_self_cgroup() or []:
            parts = line.strip().split(":", 2)
            if len(parts) != 3:
                continue
            _, controllers, relative = parts
            if controllers == "":
                continue  # v2 unified entry

            mount_segment = controllers
            if controllers.startswith("name="):
                mount_segment = controllers[len("name=") :]
            for controller in controllers.split(","):
                if controller.startswith("name="):
                    controller = controller[len("name=") :]
                mappings[controller] = ControllerMapping(
                    mount_segment=mount_segment, relative_path=relative
                )

        self._mappings = mappings
        logger.debug(f"cgroup v1 controller mappings: {sorted(mappings)}")
        return self._mappings

    def resolve_v2(self, filename: str) -> Path | None:
        """Path of a file in this process's v2 cgroup, None if not present.

        Raises:
            UnreadableError: If the file exists but is not readable
        """
        relative = self.unified_path() or ""
        return self._first_readable([_join(self._cgroup_root, relative, filename)])

    def resolve_v1(self, controller: str, filename: str) -> Path | None:
        """Path of a file in one v1 controller's hierarchy, None if not present.

        Tries the mapped mount and path first, then the controller-named mount,
        then the naive ``<root>/<controller>/<file>`` location used inside
        containers whose cgroup namespace hides the host path.

        Raises:
            UnreadableError: If a candidate exists but none is readable
        """
        candidates: list[Path] = []
        mapping = self.controller_mappings().get(controller)
        if mapping is not None:
            candidates.append(
                _join(self._cgroup_root, mapping.mount_segment, mapping.relative_path, filename)
            )
            candidates.append(_join(self._cgroup_root, controller, mapping.relative_path, filename))
        candidates.append(_join(self._cgroup_root, controller, filename))

        unique = list(dict.fromkeys(candidates))
        return self._first_readable(unique)

    def _first_readable(self, candidates: list[Path]) -> Path | None:
        unreadable: list[Path] = []
        for path in candidates:
            if self._reader.is_readable(path):
                return path
            if self._reader.exists(path):
                unreadable.append(path)

        if unreadable:
            raise UnreadableError(unreadable[0], "permission denied")
        return None
