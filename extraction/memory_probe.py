from abc import ABC, abstractmethod
import os
import resource
import sys

from extraction.units import megabytes_to_bytes

STATM_PATH = "/proc/self/statm"


class MemoryProbe(ABC):
    @abstractmethod
    def memory_limit(self) -> int:
        """Memory the process may use in total, in bytes."""
        pass

    @abstractmethod
    def memory_usage(self) -> int:
        """Memory the process currently uses, in bytes."""
        pass

    def available(self) -> int:
        return self.memory_limit() - self.memory_usage()


class ProcessMemoryProbe(MemoryProbe):
    """
    Compares resident memory against a resident-memory budget.

    The limit comes from configuration (megabytes) or, when unset, the
    physical memory of the machine. Usage is the current resident set size
    read from /proc; where /proc is missing the peak resident set size is
    used instead, which overestimates.
    """

    def __init__(self, limit_mb: int | None = None, statm_path: str = STATM_PATH):
        self.limit_mb = limit_mb
        self.statm_path = statm_path

    def memory_limit(self) -> int:
        if self.limit_mb is not None:
            return megabytes_to_bytes(self.limit_mb)
        return physical_memory()

    def memory_usage(self) -> int:
        resident = current_rss(self.statm_path)
        if resident is not None:
            return resident
        return peak_rss()


def current_rss(statm_path: str = STATM_PATH) -> int | None:
    try:
        with open(statm_path) as f:
            fields = f.read().split()
    except OSError:
        return None
    # statm: size resident shared text lib data dt, in pages
    if len(fields) < 2:
        return None
    return int(fields[1]) * resource.getpagesize()


def peak_rss() -> int:
    max_rss = resource.getrusage(resource.RUSAGE_SELF).ru_maxrss
    # ru_maxrss is reported in bytes on macOS and KiB elsewhere
    if sys.platform == "darwin":
        return int(max_rss)
    return int(max_rss) * 1024


def physical_memory() -> int:
    try:
        return os.sysconf("SC_PAGE_SIZE") * os.sysconf("SC_PHYS_PAGES")
    except (ValueError, OSError):
        return sys.maxsize


class StaticMemoryProbe(MemoryProbe):
    def __init__(self, limit: int, usage: int = 0):
        self.limit = limit
        self.usage = usage

    def memory_limit(self) -> int:
        return self.limit

    def memory_usage(self) -> int:
        return self.usage
