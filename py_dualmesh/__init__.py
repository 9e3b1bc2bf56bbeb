"""Delaunay triangulation and dual Voronoi mesh for procedural map generation."""

__version__ = "0.1.0"
