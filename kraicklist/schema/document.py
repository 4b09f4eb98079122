from __future__ import annotations

from typing import Dict, List, Union

# Value types a document field may carry once decoded from the bulk source
FieldValue = Union[str, int, float, List[str], List[float]]

DocumentFields = Dict[str, FieldValue]
