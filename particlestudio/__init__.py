"""Particle effects (rain, snow, bokeh), lens blurs and colour adjustments for raster images."""

__version__ = "0.1.0"
__all__ = ["imageops", "layers", "particles", "realbokeh", "render", "studio"]