"""Structural extraction of TypeScript service modules.

The extractor is pattern based rather than a real TypeScript parser:

- a file qualifies when it declares ``export class <Name>Service``
- methods are found by signature pattern and delimited by brace counting
- imports, exports, interfaces and constructor injections are collected
  with regular expressions

Brace counting does not understand strings, template literals or comments,
so a brace inside one of those shifts the method boundary. A real parser can
replace :class:`PatternServiceExtractor` behind the
:class:`ServiceModelExtractor` interface.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

from .deadline import Deadline
from .metrics import cyclomatic_complexity
from .models import InterfaceInfo, MethodInfo, Parameter, ServiceInfo
from .scanner import SourceFile

logger = logging.getLogger(__name__)

METHOD_RE = re.compile(r"(async\s+)?(\w+)\s*\(([^)]*)\)\s*:\s*([^{]+)\s*\{")
IMPORT_RE = re.compile(r"\bfrom\s+['\"]([^'\"]+)['\"]")
EXPORT_RE = re.compile(
    r"export\s+(?:default\s+)?(?:abstract\s+)?(?:async\s+)?"
    r"(?:class|interface|type|const|function|enum)\s+(\w+)"
)
INTERFACE_RE = re.compile(r"interface\s+(\w+)\s*\{([^}]+)\}")
CONSTRUCTOR_RE = re.compile(r"\bconstructor\s*\(")
PARAM_RE = re.compile(r"^(?:\.\.\.)?(\w+)(\?)?\s*(?::\s*(.+))?$", re.DOTALL)

ACCESS_MODIFIERS = ("public", "private", "protected", "readonly")
# Control-flow keywords the method pattern can otherwise pick up.
NON_METHOD_NAMES = {"constructor", "if", "for", "while", "switch", "catch", "function", "return"}

_CATEGORY_HINTS: Sequence[Tuple[str, str]] = (
    ("openai", "openai"),
    ("market", "market-analysis"),
    ("strategic", "strategic"),
    ("location", "location"),
    ("rationale", "rationale"),
    ("expansion", "expansion"),
)
_OPENERS = "([{<"
_CLOSERS = ")]}>"


def categorize(path: Path) -> str:
    """Service category derived from the file name."""
    name = path.name.lower()
    for hint, category in _CATEGORY_HINTS:
        if hint in name:
            return category
    return "utility"


def line_of(text: str, index: int) -> int:
    return text.count("\n", 0, index) + 1


def find_matching_brace(text: str, open_index: int) -> int:
    """Index of the ``}`` closing the ``{`` at *open_index*, or ``-1``."""
    depth = 0
    for i in range(open_index, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def split_top_level(text: str, sep: str = ",") -> List[str]:
    """Split *text* on *sep* outside of ``()[]{}<>`` nesting."""
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for i, ch in enumerate(text):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and not (ch == ">" and i > 0 and text[i - 1] == "="):
            depth = max(0, depth - 1)
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    parts.append("".join(current))
    return [p.strip() for p in parts if p.strip()]


def _split_default(part: str) -> Tuple[str, Optional[str]]:
    depth = 0
    for i, ch in enumerate(part):
        if ch in _OPENERS:
            depth += 1
        elif ch in _CLOSERS and not (ch == ">" and part[i - 1:i] == "="):
            depth = max(0, depth - 1)
        elif ch == "=" and depth == 0:
            nxt = part[i + 1:i + 2]
            prev = part[i - 1:i]
            if nxt not in ("=", ">") and prev not in ("=", "!", "<", ">"):
                return part[:i].strip(), part[i + 1:].strip()
    return part.strip(), None


def _strip_modifiers(part: str) -> Tuple[str, bool]:
    part = re.sub(r"^@\w+(?:\([^)]*\))?\s*", "", part.strip())
    had_modifier = False
    changed = True
    while changed:
        changed = False
        for mod in ACCESS_MODIFIERS:
            if part.startswith(mod + " "):
                part = part[len(mod):].lstrip()
                had_modifier = changed = True
    return part, had_modifier


def parse_parameters(params: str) -> List[Parameter]:
    result: List[Parameter] = []
    for raw in split_top_level(params):
        declared, default = _split_default(raw)
        declared, _ = _strip_modifiers(declared)
        match = PARAM_RE.match(declared)
        if not match:
            logger.debug("Unrecognised parameter declaration: %s", raw)
            continue
        result.append(
            Parameter(
                name=match.group(1),
                type=(match.group(3) or "").strip(),
                optional=bool(match.group(2)) or default is not None,
                default_value=default,
            )
        )
    return result


def _type_name(type_text: str) -> str:
    match = re.match(r"\s*(\w+)", type_text)
    return match.group(1) if match else ""


# ===================================================================
# Abstract extractor interface
# ===================================================================

@dataclass
class ExtractionOutcome:
    """Everything the extraction stage hands to later stages."""

    services: List[ServiceInfo] = field(default_factory=list)
    texts: Dict[str, str] = field(default_factory=dict)
    files_analyzed: int = 0
    skipped_files: int = 0


class ServiceModelExtractor(ABC):
    """Turns one source file into a :class:`ServiceInfo`."""

    @abstractmethod
    def extract(self, path: Path, text: str, group: str) -> Optional[ServiceInfo]:
        """Return the service declared in *text*, or ``None`` if there is none."""
        ...

    def extract_file(self, path: Path, group: str) -> Tuple[str, Optional[ServiceInfo]]:
        text = path.read_text(encoding="utf-8", errors="ignore")
        return text, self.extract(path, text, group)

    def extract_all(
        self,
        files: Sequence[SourceFile],
        deadline: Optional[Deadline] = None,
    ) -> ExtractionOutcome:
        """Extract every file; unreadable or unparseable files are skipped."""
        deadline = deadline or Deadline()
        outcome = ExtractionOutcome()
        for source in files:
            deadline.check("extract")
            try:
                text, service = self.extract_file(source.path, source.group)
            except (OSError, ValueError, re.error) as exc:
                logger.warning("Failed to extract %s: %s", source.path, exc)
                outcome.skipped_files += 1
                continue
            outcome.files_analyzed += 1
            if service is None:
                logger.debug("No service class in %s", source.path)
                continue
            outcome.texts[service.path] = text
            outcome.services.append(service)
        return outcome


# ===================================================================
# Pattern-based extractor
# ===================================================================

class PatternServiceExtractor(ServiceModelExtractor):
    """Regex and brace-counting extractor for TypeScript service classes."""

    def __init__(self, service_suffix: str = "Service") -> None:
        self.service_suffix = service_suffix
        self._class_re = re.compile(
            r"export\s+(?:default\s+)?(?:abstract\s+)?class\s+(\w+" + re.escape(service_suffix) + r")\b"
        )

    def extract(self, path: Path, text: str, group: str) -> Optional[ServiceInfo]:
        class_match = self._class_re.search(text)
        if not class_match:
            return None
        return ServiceInfo(
            name=class_match.group(1),
            path=str(path),
            group=group,
            category=categorize(path),
            methods=self.extract_methods(text),
            interfaces=self.extract_interfaces(text),
            imports=IMPORT_RE.findall(text),
            exports=EXPORT_RE.findall(text),
            lines_of_code=len(text.splitlines()),
            complexity=cyclomatic_complexity(text),
            injected_dependencies=self.extract_injections(text),
        )

    def extract_methods(self, text: str) -> List[MethodInfo]:
        methods: List[MethodInfo] = []
        total_lines = len(text.splitlines())
        for match in METHOD_RE.finditer(text):
            name = match.group(2)
            if name in NON_METHOD_NAMES:
                continue
            is_async = bool(match.group(1))
            params = match.group(3)
            return_type = match.group(4).strip()
            open_index = match.end() - 1
            close_index = find_matching_brace(text, open_index)
            if close_index < 0:
                end_line = total_lines
                body = ""
            else:
                end_line = line_of(text, close_index)
                body = text[open_index:close_index + 1]
            methods.append(
                MethodInfo(
                    name=name,
                    signature=f"{'async ' if is_async else ''}{name}({params.strip()}): {return_type}",
                    parameters=parse_parameters(params),
                    return_type=return_type,
                    is_async=is_async,
                    start_line=line_of(text, match.start(2)),
                    end_line=end_line,
                    body=body,
                )
            )
        return methods

    @staticmethod
    def extract_interfaces(text: str) -> List[InterfaceInfo]:
        return [
            InterfaceInfo(name=m.group(1), body=m.group(2).strip(), line=line_of(text, m.start()))
            for m in INTERFACE_RE.finditer(text)
        ]

    @staticmethod
    def extract_injections(text: str) -> List[str]:
        """Class names of constructor parameters that carry an access modifier."""
        match = CONSTRUCTOR_RE.search(text)
        if not match:
            return []
        depth = 0
        start = match.end()
        end = -1
        for i in range(match.end() - 1, len(text)):
            if text[i] == "(":
                depth += 1
            elif text[i] == ")":
                depth -= 1
                if depth == 0:
                    end = i
                    break
        if end < 0:
            return []
        injected: List[str] = []
        for raw in split_top_level(text[start:end]):
            declared, _ = _split_default(raw)
            declared, had_modifier = _strip_modifiers(declared)
            param = PARAM_RE.match(declared)
            if not had_modifier or not param or not param.group(3):
                continue
            type_name = _type_name(param.group(3))
            if type_name and type_name not in injected:
                injected.append(type_name)
        return injected
