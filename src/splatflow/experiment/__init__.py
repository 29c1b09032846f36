"""
Splat scenes: presentation lifecycle, rasterisation and encoding
around the shared particle integrator.
"""

from splatflow.experiment.base import BaseScene, SceneConfig
from splatflow.experiment.shadow import ShadowMap3D
from splatflow.experiment.splat import SplatCanvas
from splatflow.experiment.vortex import VortexConfig, VortexScene
from splatflow.experiment.wind import WindConfig, WindScene
