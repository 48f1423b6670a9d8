"""Execution-context key conventions shared by descriptors, coordinator and runners."""

ACTIVE_CURVE = "activeCurve"
CURVES = "curves"
SELECTED_POINTS = "selectedPoints"
SELECTED_CURVE = "selectedCurve"

DERIVATIVE_CURVE = "derivativeCurve"
DERIVATIVE_WINDOW = "derivativeWindow"
SMOOTHED_CURVE = "smoothedCurve"
BASELINE_CURVE = "baselineCurve"
CORRECTED_CURVE = "correctedCurve"
DIFFERENCE_CURVE = "differenceCurve"
PEAKS = "peaks"
VALLEYS = "valleys"
MAX_RATE_POINT = "maxRatePoint"
INTEGRAL_CURVE = "integralCurve"
PEAK_AREA = "peakArea"
ONSET_TEMPERATURE = "onsetTemperature"
ONSET_POINT = "onsetPoint"
INFLECTION_POINT = "inflectionPoint"
TANGENT_CURVE = "tangentCurve"

PARAM_PREFIX = "param."


def param_key(name: str) -> str:
    return f"{PARAM_PREFIX}{name}"


def history_key(algorithm: str) -> str:
    return f"history.{algorithm}.lastParameters"
