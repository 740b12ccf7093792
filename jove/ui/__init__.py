from . import customizer, pricing_admin

__all__ = [
	"customizer",
	"pricing_admin",
]
