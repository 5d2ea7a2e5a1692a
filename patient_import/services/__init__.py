"""Import pipeline services: classify, extract, validate, map, gate, aggregate."""
