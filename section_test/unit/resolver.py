"""Declaration resolver.

Turns a "declare test" or "declare section" call into either the registration
of a new unit or a lookup of a unit that an earlier pass already registered.
"""

import logging
from typing import TYPE_CHECKING, Any, Callable, Optional

from ..exceptions import ConfigurationError
from .execution_unit import ExecutionUnit

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

Body = Callable[..., Any]


def _check_name(name: str, kind: str) -> None:
    if not isinstance(name, str) or not name.strip():
        raise ConfigurationError(f"A {kind} requires a non-empty name, got {name!r}")


def _forced_length(print_length: Optional[int]) -> Optional[int]:
    if print_length is not None and print_length > 0:
        return print_length
    return None


def declare_test(
    session: "Session",
    name: str,
    body: Body,
    expect_fail: bool = False,
    print_length: Optional[int] = None,
    source_file: Optional[str] = None,
    fails_as: Optional[str] = None,
) -> ExecutionUnit:
    """Register a root test.

    Raises:
        ConfigurationError: If the name is empty, a test or section body is
            currently running, or the name is already taken in this session.
    """
    _check_name(name, "test")

    if session.current is not None:
        raise ConfigurationError(
            f"add_test() encountered while executing a test or section named "
            f"\"{session.current.friendly_name}\""
        )
    if name in session.roots:
        raise ConfigurationError(
            f"A test named \"{name}\" is already declared in "
            f"{session.roots[name].source_file or 'this session'}"
        )

    forced = _forced_length(print_length)
    unit = ExecutionUnit(
        unit_id=session.next_id(),
        friendly_name=name,
        expect_fail=expect_fail,
        body=body,
        source_file=source_file,
        fails_as=fails_as,
        print_length=forced or session.config.print_length,
        print_length_forced=forced is not None,
        debug_mode=session.debug_mode,
    )
    session.register_root(unit)

    logger.debug(
        "Test w/ friendly name \"%s\" has ID \"%s\" and file \"%s\"",
        name, unit.unit_id, source_file,
    )
    return unit


def declare_section(
    session: "Session",
    parent: ExecutionUnit,
    name: str,
    body: Body,
    expect_fail: bool = False,
    print_length: Optional[int] = None,
    fails_as: Optional[str] = None,
    execute: Optional[Callable[[ExecutionUnit], None]] = None,
) -> ExecutionUnit:
    """Resolve a section declaration made inside ``parent``'s body.

    On first sighting the section is registered as a child of ``parent`` and
    its body is stored, not run. On a later sighting the existing child is
    returned, and if ``parent`` is already descending into its sections the
    child is executed through ``execute``.

    Raises:
        ConfigurationError: If the name is empty, or if it is new and
            ``parent`` is already descending into its sections.
    """
    _check_name(name, "section")

    known_id = parent.section_names_to_ids.get(name)
    if known_id is None and parent.execute_sections:
        raise ConfigurationError(
            f"Section \"{name}\" declared on \"{parent.friendly_name}\" after its "
            f"sections started running; declare it in \"{parent.friendly_name}\"'s "
            f"own body"
        )
    if known_id is None:
        forced = _forced_length(print_length)
        unit = ExecutionUnit(
            unit_id=session.next_id(),
            friendly_name=name,
            expect_fail=expect_fail,
            body=body,
            fails_as=fails_as,
            print_length=forced or parent.print_length,
            print_length_forced=forced is not None,
        )
        parent.append_child(unit.unit_id, unit)
        parent.section_names_to_ids[name] = unit.unit_id
        logger.debug(
            "Section \"%s\" registered under \"%s\" as \"%s\"",
            name, parent.friendly_name, unit.unit_id,
        )
        return unit

    unit = parent.children[known_id]
    if parent.execute_sections and execute is not None:
        execute(unit)
    else:
        logger.debug(
            "Section \"%s\" already declared under \"%s\", keeping \"%s\"",
            name, parent.friendly_name, known_id,
        )
    return unit
