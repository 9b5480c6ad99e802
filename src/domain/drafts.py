"""
Settings drafts.

A manager edits a *draft* of the delivery fee rules while the *committed*
rule set stays untouched:

* ``set_text`` stages the raw text of a numeric field; nothing is parsed on
  keystrokes, so a lone ``"."`` or ``"3,"`` is fine mid-typing.
* ``blur`` parses staged text into the draft.
* ``cancel`` throws the draft away.
* ``save`` validates the whole draft and only on success promotes it.
"""

from __future__ import annotations

import copy
from typing import Any

from .fee_rules import DEFAULT_RULE_SET, DeliveryFeeRuleSet, validate_rule_set
from .money import parse_decimal
from .results import FieldCheck, FieldError, Invalid, Ok

# Blank text in these fields clears them to 0 instead of removing them.
REQUIRED_NUMERIC = frozenset({"baseFee", "threshold", "surcharge", "additionalFee"})


def _split(path: str) -> list[str | int]:
    return [int(p) if p.isdigit() else p for p in path.split(".")]


def _get_path(doc: Any, path: str) -> Any:
    node = doc
    for key in _split(path):
        if node is None:
            return None
        try:
            node = node[key]
        except (KeyError, IndexError, TypeError):
            return None
    return node


def _slot(node: Any, key: str | int) -> Any:
    if isinstance(node, list):
        while len(node) <= key:  # type: ignore[operator]
            node.append(None)
        return node[key]
    return node.get(key)


def _set_path(doc: dict[str, Any], path: str, value: Any) -> None:
    keys = _split(path)
    node: Any = doc
    for key, next_key in zip(keys, keys[1:]):
        child = _slot(node, key)
        if child is None:
            child = [] if isinstance(next_key, int) else {}
            node[key] = child
        node = child
    _slot(node, keys[-1])
    node[keys[-1]] = value


class RuleSetEditor:
    def __init__(self, committed: DeliveryFeeRuleSet = DEFAULT_RULE_SET):
        self._committed = committed
        self._draft: dict[str, Any] = committed.to_payload()
        self._staged: dict[str, str] = {}
        self.errors: dict[str, str] = {}

    @property
    def committed(self) -> DeliveryFeeRuleSet:
        return self._committed

    @property
    def draft(self) -> dict[str, Any]:
        return copy.deepcopy(self._draft)

    @property
    def dirty(self) -> bool:
        return bool(self._staged) or self._draft != self._committed.to_payload()

    def text(self, path: str) -> str:
        """What the input field should display."""
        if path in self._staged:
            return self._staged[path]
        value = _get_path(self._draft, path)
        return "" if value is None else str(value)

    def set_value(self, path: str, value: Any) -> None:
        """Set a non-text field (``type``, a whole ``peakHours`` list...)."""
        _set_path(self._draft, path, copy.deepcopy(value))

    def set_text(self, path: str, text: str) -> None:
        self._staged[path] = text

    def blur(self, path: str) -> FieldCheck:
        if path not in self._staged:
            return FieldCheck.passed()
        text = self._staged[path]
        try:
            value = parse_decimal(text)
        except ValueError:
            message = "must be a number"
            self.errors[path] = message
            return FieldCheck.failed(message)

        del self._staged[path]
        self.errors.pop(path, None)
        if value is None:
            leaf = path.rsplit(".", 1)[-1]
            _set_path(self._draft, path, "0" if leaf in REQUIRED_NUMERIC else None)
        else:
            _set_path(self._draft, path, str(value))
        return FieldCheck.passed()

    def cancel(self) -> None:
        self._draft = self._committed.to_payload()
        self._staged.clear()
        self.errors.clear()

    def save(self) -> Ok[DeliveryFeeRuleSet] | Invalid:
        staged_errors = [
            FieldError(path, "decimal_parsing", self.errors[path])
            for path in list(self._staged)
            if not self.blur(path).valid
        ]
        if staged_errors:
            return Invalid(tuple(staged_errors))

        result = validate_rule_set(self._draft)
        if isinstance(result, Ok):
            self._committed = result.value
            self._draft = result.value.to_payload()
        return result
