"""HTTP clients used by the Header Gate."""
