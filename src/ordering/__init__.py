"""Pizza ordering domain: pricing, order lifecycle and courier dispatch."""
