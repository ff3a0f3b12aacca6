"""UCC clinic admin console: state and data layer for the clinic back office."""

__version__ = "1.0.0"
__all__ = [
	"clinicapi",
	"config",
	"derived",
	"forms",
	"pages",
	"polling",
	"store",
]
