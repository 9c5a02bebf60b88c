#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Lookup tables from FIT profile values to the workout model.

Decoders hand enum fields over either as raw profile codes or as the
profile's names for them (fitparse does the latter), so every table here
is keyed by name, with a code --> name table alongside where needed.

See the "Profile.xlsx" file that comes with the FIT SDK.

"""
from types import MappingProxyType

from pwfio._types import Sport, StrokeType


SPORT_CODES = MappingProxyType({
    0: 'generic', 1: 'running', 2: 'cycling', 3: 'transition',
    4: 'fitness_equipment', 5: 'swimming', 10: 'training', 11: 'walking',
    12: 'cross_country_skiing', 13: 'alpine_skiing', 14: 'snowboarding',
    15: 'rowing', 16: 'mountaineering', 17: 'hiking', 18: 'multisport',
    19: 'paddling', 21: 'e_biking', 30: 'inline_skating',
    35: 'snowshoeing', 37: 'stand_up_paddleboarding', 41: 'kayaking',
    47: 'boxing', 48: 'floor_climbing', 62: 'hiit',
})

SPORTS = MappingProxyType({
    'running': Sport.RUNNING,
    'cycling': Sport.CYCLING,
    'e_biking': Sport.CYCLING,
    'transition': Sport.TRANSITION,
    'swimming': Sport.SWIMMING,
    'walking': Sport.WALKING,
    'hiking': Sport.HIKING,
    'mountaineering': Sport.HIKING,
    'snowshoeing': Sport.HIKING,
    'cross_country_skiing': Sport.CROSS_COUNTRY_SKIING,
    'alpine_skiing': Sport.DOWNHILL_SKIING,
    'snowboarding': Sport.SNOWBOARDING,
    'rowing': Sport.ROWING,
    'paddling': Sport.KAYAKING,
    'kayaking': Sport.KAYAKING,
    'stand_up_paddleboarding': Sport.STAND_UP_PADDLING,
    'floor_climbing': Sport.STAIR_CLIMBING,
    'hiit': Sport.FUNCTIONAL_FITNESS,
    'boxing': Sport.CARDIO,
    'fitness_equipment': Sport.CARDIO,
    'training': Sport.STRENGTH_TRAINING,
})

# Sports that say little on their own; the sub sport decides.
GENERIC_SPORTS = frozenset(('generic', 'fitness_equipment', 'training'))

SUB_SPORT_CODES = MappingProxyType({
    14: 'indoor_rowing', 15: 'elliptical', 16: 'stair_climbing',
    17: 'lap_swimming', 18: 'open_water', 19: 'flexibility_training',
    20: 'strength_training', 26: 'cardio_training', 42: 'skate_skiing',
    43: 'yoga', 44: 'pilates', 37: 'backcountry', 38: 'resort',
})

SUB_SPORTS = MappingProxyType({
    'indoor_rowing': Sport.ROWING,
    'elliptical': Sport.ELLIPTICAL,
    'stair_climbing': Sport.STAIR_CLIMBING,
    'flexibility_training': Sport.YOGA,
    'strength_training': Sport.STRENGTH_TRAINING,
    'cardio_training': Sport.CARDIO,
    'yoga': Sport.YOGA,
    'pilates': Sport.PILATES,
    'skate_skiing': Sport.CROSS_COUNTRY_SKIING,
    'backcountry': Sport.DOWNHILL_SKIING,
    'resort': Sport.DOWNHILL_SKIING,
})

SWIM_STROKE_CODES = MappingProxyType({
    0: 'freestyle', 1: 'backstroke', 2: 'breaststroke', 3: 'butterfly',
    4: 'drill', 5: 'mixed', 6: 'im',
})

SWIM_STROKES = MappingProxyType({
    'freestyle': StrokeType.FREESTYLE,
    'backstroke': StrokeType.BACKSTROKE,
    'breaststroke': StrokeType.BREASTSTROKE,
    'butterfly': StrokeType.BUTTERFLY,
    'drill': StrokeType.DRILL,
    'mixed': StrokeType.MIXED,
})

LENGTH_TYPES = MappingProxyType({0: 'idle', 1: 'active'})

MANUFACTURERS = MappingProxyType({
    1: 'garmin', 15: 'dynastream', 23: 'suunto', 32: 'wahoo_fitness',
    123: 'polar', 255: 'development', 260: 'zwift', 294: 'coros',
})

DEVICE_TYPE_CODES = MappingProxyType({
    11: 'bike_power', 17: 'fitness_equipment', 119: 'weight_scale',
    120: 'heart_rate', 121: 'bike_speed_cadence', 122: 'bike_cadence',
    123: 'bike_speed', 124: 'stride_speed_distance',
})

DEVICE_TYPES = MappingProxyType({
    'bike_power': 'power_meter',
    'fitness_equipment': 'smart_trainer',
    'heart_rate': 'heart_rate_monitor',
    'bike_speed_cadence': 'speed_cadence_sensor',
    'bike_cadence': 'cadence_sensor',
    'bike_speed': 'speed_sensor',
    'stride_speed_distance': 'foot_pod',
})


def enum_name(value, codes):
    """Profile name for `value`, whether it arrived as code or name."""
    if value is None:
        return None
    if isinstance(value, str):
        return value.strip().lower()
    return codes.get(int(value), value)


def map_sport(sport, sub_sport=None):
    """FIT sport (+ sub sport) --> Sport, falling back to Sport.OTHER."""
    sport = enum_name(sport, SPORT_CODES)
    sub_sport = enum_name(sub_sport, SUB_SPORT_CODES)

    if sport in GENERIC_SPORTS or sport not in SPORTS:
        refined = SUB_SPORTS.get(sub_sport)
        if refined is not None:
            return refined
    return SPORTS.get(sport, Sport.OTHER)


def map_device_type(value):
    name = enum_name(value, DEVICE_TYPE_CODES)
    if name is None:
        return None
    return DEVICE_TYPES.get(name, 'other')


def map_manufacturer(value):
    name = enum_name(value, MANUFACTURERS)
    if name is None:
        return None
    if isinstance(name, int):
        return 'manufacturer #%d' % name
    return name
