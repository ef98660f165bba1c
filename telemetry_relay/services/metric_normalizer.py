"""
Metric Normalizer
Static, per-provider tables mapping native metric identifiers to the internal
(category, type, unit) triple. Pure functions with no request context.
"""

from typing import Dict, NamedTuple, Optional

from telemetry_relay.enums import MetricCategory


class MetricSpec(NamedTuple):
    category: str
    type: str
    unit: Optional[str]


def _spec(category: MetricCategory, metric_type: str, unit: Optional[str]) -> MetricSpec:
    return MetricSpec(category.value, metric_type, unit)


# ============================================================================
# Apple HealthKit (HKQuantityTypeIdentifier* / HKCategoryTypeIdentifier*)
# ============================================================================

APPLE_HEALTH_METRICS: Dict[str, MetricSpec] = {
    "HKQuantityTypeIdentifierHeartRate": _spec(MetricCategory.CARDIOVASCULAR, "heart_rate", "bpm"),
    "HKQuantityTypeIdentifierRestingHeartRate": _spec(MetricCategory.CARDIOVASCULAR, "resting_hr", "bpm"),
    "HKQuantityTypeIdentifierWalkingHeartRateAverage": _spec(MetricCategory.CARDIOVASCULAR, "walking_hr", "bpm"),
    "HKQuantityTypeIdentifierHeartRateVariabilitySDNN": _spec(MetricCategory.CARDIOVASCULAR, "hrv", "ms"),
    "HKCategoryTypeIdentifierIrregularHeartRhythmEvent": _spec(MetricCategory.CARDIOVASCULAR, "irregular_heartbeat", "count"),
    "HKQuantityTypeIdentifierBloodPressureSystolic": _spec(MetricCategory.BLOOD_PRESSURE, "systolic", "mmHg"),
    "HKQuantityTypeIdentifierBloodPressureDiastolic": _spec(MetricCategory.BLOOD_PRESSURE, "diastolic", "mmHg"),
    "HKQuantityTypeIdentifierOxygenSaturation": _spec(MetricCategory.BLOOD_CIRCULATION, "spo2", "%"),
    "HKQuantityTypeIdentifierPeripheralPerfusionIndex": _spec(MetricCategory.BLOOD_CIRCULATION, "perfusion_index", "%"),
    "HKQuantityTypeIdentifierRespiratoryRate": _spec(MetricCategory.RESPIRATORY, "respiratory_rate", "breaths/min"),
    "HKQuantityTypeIdentifierBodyTemperature": _spec(MetricCategory.TEMPERATURE, "core_temp", "degC"),
    "HKQuantityTypeIdentifierAppleSleepingWristTemperature": _spec(MetricCategory.TEMPERATURE, "skin_temp", "degC"),
    "HKQuantityTypeIdentifierStepCount": _spec(MetricCategory.ACTIVITY, "steps", "count"),
    "HKQuantityTypeIdentifierDistanceWalkingRunning": _spec(MetricCategory.ACTIVITY, "distance", "m"),
    "HKQuantityTypeIdentifierActiveEnergyBurned": _spec(MetricCategory.ACTIVITY, "calories", "kcal"),
    "HKQuantityTypeIdentifierAppleExerciseTime": _spec(MetricCategory.ACTIVITY, "active_minutes", "min"),
    "HKQuantityTypeIdentifierFlightsClimbed": _spec(MetricCategory.ACTIVITY, "floors_climbed", "count"),
    "HKCategoryTypeIdentifierSleepAnalysis": _spec(MetricCategory.SLEEP, "sleep_duration", "min"),
    "HKQuantityTypeIdentifierNumberOfTimesFallen": _spec(MetricCategory.SAFETY, "fall_detected", "count"),
    "HKQuantityTypeIdentifierAppleWalkingSteadiness": _spec(MetricCategory.SAFETY, "walking_steadiness", "%"),
    "HKQuantityTypeIdentifierBodyMass": _spec(MetricCategory.BODY_COMPOSITION, "weight", "kg"),
    "HKQuantityTypeIdentifierBodyFatPercentage": _spec(MetricCategory.BODY_COMPOSITION, "body_fat_percentage", "%"),
    "HKQuantityTypeIdentifierBloodGlucose": _spec(MetricCategory.METABOLIC, "glucose", "mg/dL"),
}


# ============================================================================
# Garmin Health API summary fields
# ============================================================================

GARMIN_METRICS: Dict[str, MetricSpec] = {
    "steps": _spec(MetricCategory.ACTIVITY, "steps", "count"),
    "distanceInMeters": _spec(MetricCategory.ACTIVITY, "distance", "m"),
    "activeKilocalories": _spec(MetricCategory.ACTIVITY, "calories", "kcal"),
    "floorsClimbed": _spec(MetricCategory.ACTIVITY, "floors_climbed", "count"),
    "activeTimeInSeconds": _spec(MetricCategory.ACTIVITY, "active_time", "s"),
    "activityDurationInSeconds": _spec(MetricCategory.ACTIVITY, "activity_duration", "s"),
    "averageHeartRateInBeatsPerMinute": _spec(MetricCategory.CARDIOVASCULAR, "heart_rate", "bpm"),
    "restingHeartRateInBeatsPerMinute": _spec(MetricCategory.CARDIOVASCULAR, "resting_hr", "bpm"),
    "maxHeartRateInBeatsPerMinute": _spec(MetricCategory.CARDIOVASCULAR, "max_hr", "bpm"),
    "averageSpo2Value": _spec(MetricCategory.BLOOD_CIRCULATION, "spo2", "%"),
    "averageRespirationValue": _spec(MetricCategory.RESPIRATORY, "respiratory_rate", "breaths/min"),
    "averageStressLevel": _spec(MetricCategory.STRESS, "stress_score", "score"),
    "sleepDurationInSeconds": _spec(MetricCategory.SLEEP, "sleep_duration", "s"),
    "deepSleepDurationInSeconds": _spec(MetricCategory.SLEEP, "deep_sleep", "s"),
    "lightSleepDurationInSeconds": _spec(MetricCategory.SLEEP, "light_sleep", "s"),
    "remSleepInSeconds": _spec(MetricCategory.SLEEP, "rem_sleep", "s"),
    "awakeDurationInSeconds": _spec(MetricCategory.SLEEP, "wake_time", "s"),
}


# ============================================================================
# Fitbit Web API (flattened collection fields)
# ============================================================================

FITBIT_METRICS: Dict[str, MetricSpec] = {
    "activities.steps": _spec(MetricCategory.ACTIVITY, "steps", "count"),
    "activities.caloriesOut": _spec(MetricCategory.ACTIVITY, "calories", "kcal"),
    "activities.floors": _spec(MetricCategory.ACTIVITY, "floors_climbed", "count"),
    "activities.distance": _spec(MetricCategory.ACTIVITY, "distance", "km"),
    "activities.veryActiveMinutes": _spec(MetricCategory.ACTIVITY, "active_minutes", "min"),
    "activities.sedentaryMinutes": _spec(MetricCategory.ACTIVITY, "sedentary_minutes", "min"),
    "activities.restingHeartRate": _spec(MetricCategory.CARDIOVASCULAR, "resting_hr", "bpm"),
    "sleep.totalMinutesAsleep": _spec(MetricCategory.SLEEP, "sleep_duration", "min"),
    "sleep.stages.deep": _spec(MetricCategory.SLEEP, "deep_sleep", "min"),
    "sleep.stages.light": _spec(MetricCategory.SLEEP, "light_sleep", "min"),
    "sleep.stages.rem": _spec(MetricCategory.SLEEP, "rem_sleep", "min"),
    "sleep.stages.wake": _spec(MetricCategory.SLEEP, "wake_time", "min"),
    "body.weight": _spec(MetricCategory.BODY_COMPOSITION, "weight", "kg"),
    "body.bmi": _spec(MetricCategory.BODY_COMPOSITION, "bmi", "kg/m2"),
    "body.fat": _spec(MetricCategory.BODY_COMPOSITION, "body_fat_percentage", "%"),
}


# ============================================================================
# Omron measurement values ('{measurement_type}.{value_key}')
# ============================================================================

OMRON_METRICS: Dict[str, MetricSpec] = {
    "blood_pressure.systolic": _spec(MetricCategory.BLOOD_PRESSURE, "systolic", "mmHg"),
    "blood_pressure.diastolic": _spec(MetricCategory.BLOOD_PRESSURE, "diastolic", "mmHg"),
    "blood_pressure.pulse": _spec(MetricCategory.CARDIOVASCULAR, "heart_rate", "bpm"),
    # unit None: keep whatever unit the device reported
    "weight.weight": _spec(MetricCategory.BODY_COMPOSITION, "weight", None),
    "weight.body_fat_percentage": _spec(MetricCategory.BODY_COMPOSITION, "body_fat_percentage", "%"),
    "temperature.temperature": _spec(MetricCategory.TEMPERATURE, "temperature", None),
    "glucose.glucose": _spec(MetricCategory.METABOLIC, "glucose", None),
}


def normalize_metric(
    mapping: Dict[str, MetricSpec],
    raw_type: str,
    raw_unit: Optional[str] = None
) -> MetricSpec:
    """
    Look up raw_type; unknown identifiers are kept as OTHER with the raw type and unit.
    A mapped spec without a unit takes the raw unit.
    """
    spec = mapping.get(raw_type)
    if spec is None:
        return MetricSpec(MetricCategory.OTHER.value, raw_type, raw_unit)
    if spec.unit is None:
        return spec._replace(unit=raw_unit)
    return spec
