from pwfio._types.sports import Sport, StrokeType, Modality
from pwfio._types.workout import (
    History, Workout, Segment, Lap, TelemetryPoint, PoolLength, SwimSummary,
    PowerMetrics, DeviceInfo, Transition)
from pwfio._types.activitydata import ActivityData
