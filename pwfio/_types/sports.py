#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Shared vocabularies: sports, swim strokes and set modalities.

"""
from enum import Enum
from types import MappingProxyType


class Sport(Enum):
    SWIMMING = 'swimming'
    CYCLING = 'cycling'
    RUNNING = 'running'
    ROWING = 'rowing'
    TRANSITION = 'transition'
    STRENGTH = 'strength'
    STRENGTH_TRAINING = 'strength-training'
    HIKING = 'hiking'
    WALKING = 'walking'
    YOGA = 'yoga'
    PILATES = 'pilates'
    FUNCTIONAL_FITNESS = 'functional-fitness'
    CALISTHENICS = 'calisthenics'
    CARDIO = 'cardio'
    CROSS_COUNTRY_SKIING = 'cross-country-skiing'
    DOWNHILL_SKIING = 'downhill-skiing'
    SNOWBOARDING = 'snowboarding'
    STAND_UP_PADDLING = 'stand-up-paddling'
    KAYAKING = 'kayaking'
    ELLIPTICAL = 'elliptical'
    STAIR_CLIMBING = 'stair-climbing'
    OTHER = 'other'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text, default=None):
        """Canonical sport name (case-insensitive, a few aliases) --> Sport."""
        if text is None:
            return default
        if isinstance(text, Sport):
            return text
        key = str(text).strip().lower().replace('_', '-').replace(' ', '-')
        try:
            return SPORT_ALIASES[key]
        except KeyError:
            pass
        try:
            return cls(key)
        except ValueError:
            return default

    @property
    def is_transition(self):
        return self is Sport.TRANSITION

    @property
    def has_route(self):
        """Sports that normally produce a GPS track."""
        return self in ROUTE_SPORTS


SPORT_ALIASES = MappingProxyType({
    'cross-fit': Sport.FUNCTIONAL_FITNESS,
    'crossfit': Sport.FUNCTIONAL_FITNESS,
    'sup': Sport.STAND_UP_PADDLING,
    'kayak': Sport.KAYAKING,
})

ROUTE_SPORTS = frozenset((
    Sport.SWIMMING, Sport.CYCLING, Sport.RUNNING, Sport.ROWING,
    Sport.HIKING, Sport.WALKING, Sport.CROSS_COUNTRY_SKIING,
    Sport.DOWNHILL_SKIING, Sport.SNOWBOARDING, Sport.STAND_UP_PADDLING,
    Sport.KAYAKING,
))


class StrokeType(Enum):
    FREESTYLE = 'freestyle'
    BACKSTROKE = 'backstroke'
    BREASTSTROKE = 'breaststroke'
    BUTTERFLY = 'butterfly'
    DRILL = 'drill'
    MIXED = 'mixed'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text, default=None):
        if text is None:
            return default
        if isinstance(text, StrokeType):
            return text
        try:
            return cls(str(text).strip().lower())
        except ValueError:
            return default


class Modality(Enum):
    """What kind of effort a set (lap) records."""
    STRENGTH = 'strength'
    COUNTDOWN = 'countdown'
    STOPWATCH = 'stopwatch'
    INTERVAL = 'interval'
    CYCLING = 'cycling'
    RUNNING = 'running'
    ROWING = 'rowing'
    SWIMMING = 'swimming'

    def __str__(self):
        return self.value

    @classmethod
    def parse(cls, text, default=None):
        if text is None:
            return default
        try:
            return cls(str(text).strip().lower())
        except ValueError:
            return default


SPORT_MODALITIES = MappingProxyType({
    Sport.CYCLING: Modality.CYCLING,
    Sport.RUNNING: Modality.RUNNING,
    Sport.ROWING: Modality.ROWING,
    Sport.SWIMMING: Modality.SWIMMING,
    Sport.STRENGTH: Modality.STRENGTH,
    Sport.STRENGTH_TRAINING: Modality.STRENGTH,
    Sport.CALISTHENICS: Modality.STRENGTH,
    Sport.FUNCTIONAL_FITNESS: Modality.STRENGTH,
})


def modality_for(sport):
    return SPORT_MODALITIES.get(sport, Modality.STOPWATCH)
