"""Render layers - connections, flow particles and entities."""

from render.cache import RenderCache
from render.connections import ConnectionGlyph, ConnectionsLayer
from render.entities import DEFAULT_ENTITY_STYLE, EntitiesLayer, EntityGlyph, EntityStyle, entity_radius
from render.particles import DEFAULT_PARTICLE_CONFIG, ParticleConfig, ParticleGlyph, ParticleLayer, plan_particles
from render.quality import PRESETS, QualityLevel, QualityPreset
from render.styles import DEFAULT_FLOW_STYLE, Direction, FlowStyle, Speed, link_width
from render.transitions import TransitionGroup

__all__ = [
    "DEFAULT_ENTITY_STYLE",
    "DEFAULT_FLOW_STYLE",
    "DEFAULT_PARTICLE_CONFIG",
    "PRESETS",
    "ConnectionGlyph",
    "ConnectionsLayer",
    "Direction",
    "EntitiesLayer",
    "EntityGlyph",
    "EntityStyle",
    "FlowStyle",
    "ParticleConfig",
    "ParticleGlyph",
    "ParticleLayer",
    "QualityLevel",
    "QualityPreset",
    "RenderCache",
    "Speed",
    "TransitionGroup",
    "entity_radius",
    "link_width",
    "plan_particles",
]
