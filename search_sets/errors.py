# Bonsai - OpenBIM Blender Add-on
# Copyright (C) 2025 Your Engineering Firm
#
# This file is part of Bonsai.
#
# Bonsai is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.

"""
Qualified Path: search_sets/errors.py

Search Set Errors
-----------------
Typed failures surfaced by the classification engine.

Batch-level failures are raised. ElementAccessFailure and SetCreationFailure
are recovered where they happen and only kept as diagnostics.
"""

from typing import Optional


class SearchSetError(Exception):
    """Base class for all search set failures"""


class ValidationError(SearchSetError):
    """Caller-supplied input is invalid; no work was performed"""


class DisciplinesNotBuilt(SearchSetError):
    """Set building was attempted before the discipline sets exist"""

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or
                         "Please create discipline search sets first before creating "
                         "element or custom search sets.")


class DiscoveryError(SearchSetError):
    """A discovery step found nothing usable"""


class NoDisciplinesFound(DiscoveryError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or
                         "No discipline patterns found in model files. Please ensure your "
                         "files contain discipline identifiers like _ARCH_, _STRC_, _MEP_, etc.")


class NoValuesDiscovered(DiscoveryError):
    def __init__(self, attribute: str, disciplines=()):
        self.attribute = attribute
        self.disciplines = list(disciplines)
        scope = ", ".join(self.disciplines) or "the selected disciplines"
        super().__init__(f"No values for '{attribute}' found in {scope}.")


class NoSetsCreated(DiscoveryError):
    """Values were found but every set for them failed"""

    def __init__(self, attribute: str, diagnostics=()):
        self.attribute = attribute
        self.diagnostics = list(diagnostics)
        detail = self.diagnostics[0] if self.diagnostics else "unknown error"
        super().__init__(f"No search sets created for '{attribute}': "
                         f"{len(self.diagnostics)} failed ({detail}).")


class ElementAccessFailure(SearchSetError):
    """Reading an element's properties failed on the host side"""

    def __init__(self, element_key: str, cause: BaseException):
        self.element_key = element_key
        self.cause = cause
        super().__init__(f"Cannot read properties of {element_key}: {cause}")


class SetCreationFailure(SearchSetError):
    """One (discipline, value) leaf could not be materialized"""

    def __init__(self, discipline: str, value: str, cause: object):
        self.discipline = discipline
        self.value = value
        self.cause = cause
        super().__init__(f"Error creating {discipline}\\{value}: {cause}")


class OperationInProgress(SearchSetError):
    """Another operation is still running on the same engine"""


class OperationCancelled(SearchSetError):
    """The caller cancelled a running operation"""
