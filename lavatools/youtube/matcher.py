"""
Structural template matching over frozen ESTree nodes.

A template describes a partial shape. Identifiers are matched by node type only
unless a template pins the name, so renaming by the obfuscator never defeats a
match.

    ExactFields({"type": Literal("Identifier")})      any identifier
    AnyOf([a, b])                                     a or b
    ArrayOf([a, b])                                   list of exactly two, element-wise
    Literal("=")                                      equality

`shape()` builds templates from plain Python data: dicts become ExactFields,
lists become ArrayOf, anything else becomes Literal.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union


@dataclass(frozen=True)
class ExactFields:
    fields: Mapping[str, "Template"]


@dataclass(frozen=True)
class AnyOf:
    options: Sequence["Template"]


@dataclass(frozen=True)
class ArrayOf:
    items: Sequence["Template"]


@dataclass(frozen=True)
class Literal:
    value: Any


Template = Union[ExactFields, AnyOf, ArrayOf, Literal]

# Matches any present node.
ANY = ExactFields({})


def shape(spec) -> Template:
    if isinstance(spec, (ExactFields, AnyOf, ArrayOf, Literal)):
        return spec
    if isinstance(spec, dict):
        return ExactFields({k: shape(v) for k, v in spec.items()})
    if isinstance(spec, (list, tuple)):
        return ArrayOf([shape(v) for v in spec])
    return Literal(spec)


def match(node, template: Template) -> bool:
    if isinstance(template, AnyOf):
        return any(match(node, option) for option in template.options)

    if isinstance(template, ArrayOf):
        if not isinstance(node, list) or len(node) != len(template.items):
            return False
        return all(
            item is not None and match(item, sub)
            for item, sub in zip(node, template.items)
        )

    if isinstance(template, ExactFields):
        if not isinstance(node, dict):
            return False
        return all(match(node.get(key), sub) for key, sub in template.fields.items())

    if isinstance(template, Literal):
        # bool is an int subclass; True must not equal 1 here
        if isinstance(node, bool) != isinstance(template.value, bool):
            return False
        return node == template.value

    raise TypeError(f"not a template: {template!r}")
