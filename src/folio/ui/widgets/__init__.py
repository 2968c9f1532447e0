"""Element wrappers used by the Folio UI."""

from .controls import MeasuredContainer, StyledElement, ToolbarButton

__all__ = [
	"MeasuredContainer",
	"StyledElement",
	"ToolbarButton",
]
