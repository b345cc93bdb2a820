[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "particlestudio"
version = "0.1.0"
description = "Compose rain, snow and bokeh particle layers over images and apply simple colour adjustments"
requires-python = ">=3.10"
keywords = ["image", "particles", "rain", "snow", "bokeh", "ppm", "color-correction"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Editors :: Raster-Based",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
particlestudio = "particlestudio.studio:main"

[tool.hatch.build.targets.wheel]
packages = ["particlestudio"]

[tool.pytest.ini_options]
addopts = "-ra"
