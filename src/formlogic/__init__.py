"""
Form Logic Model Package

Canonical, strongly-typed representation of dynamic form definitions:
ordered sections of typed fields, per-field validation, and
field-to-field conditional logic (showWhen / requireWhen).

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - HTTP transport or storage
    - Rendering
    - Evaluating rules against submitted answers

Persisted schemas of any historical shape are parsed into the model;
the model is always written back in one canonical shape.
"""

__version__ = "0.1.0"
