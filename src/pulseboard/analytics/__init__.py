"""Analytics engine for deriving athlete scores from daily biometric rows.

Modules:
    window       -- Rolling window statistics (trailing means, std, clock times)
    features     -- Single-day metric extractors (status bands, events)
    strain       -- Strain / stress index from resting HR and HRV
    recovery     -- Sleep debt, HRV trend, recovery readiness
    circadian    -- Circadian score, chronotype, disruptions
    alerts       -- Acute biometric flags, risk score, squad ranking
    availability -- Availability state from open injuries, injury KPIs
    summary      -- Per-athlete summary aggregation
"""

from pulseboard.analytics.window import (
    trailing,
    field_values,
    window_mean,
    window_std,
    clock_minutes,
    night_minutes,
)
from pulseboard.analytics.features import (
    resting_hr_status,
    hrv_status,
    metric_status,
    daily_readiness,
    recovery_events,
)
from pulseboard.analytics.strain import (
    strain_index,
    stress_level,
    score_stress,
    daily_stress_load,
    StressResult,
)
from pulseboard.analytics.recovery import (
    sleep_debt,
    hrv_trend,
    recovery_readiness,
    score_readiness,
    ReadinessResult,
)
from pulseboard.analytics.circadian import (
    circadian_score,
    classify_chronotype,
    analyze_circadian,
    Chronotype,
    CircadianResult,
)
from pulseboard.analytics.alerts import (
    biometric_flags,
    risk_score,
    rank_athletes,
    recovery_alert,
    training_load_trend,
    BiometricFlags,
    RiskEntry,
)
from pulseboard.analytics.availability import (
    classify_availability,
    injury_kpis,
    Availability,
    InjuryKPIs,
)
from pulseboard.analytics.summary import build_athlete_summary, AthleteSummary

__all__ = [
    # window
    "trailing",
    "field_values",
    "window_mean",
    "window_std",
    "clock_minutes",
    "night_minutes",
    # features
    "resting_hr_status",
    "hrv_status",
    "metric_status",
    "daily_readiness",
    "recovery_events",
    # strain
    "strain_index",
    "stress_level",
    "score_stress",
    "daily_stress_load",
    "StressResult",
    # recovery
    "sleep_debt",
    "hrv_trend",
    "recovery_readiness",
    "score_readiness",
    "ReadinessResult",
    # circadian
    "circadian_score",
    "classify_chronotype",
    "analyze_circadian",
    "Chronotype",
    "CircadianResult",
    # alerts
    "biometric_flags",
    "risk_score",
    "rank_athletes",
    "recovery_alert",
    "training_load_trend",
    "BiometricFlags",
    "RiskEntry",
    # availability
    "classify_availability",
    "injury_kpis",
    "Availability",
    "InjuryKPIs",
    # summary
    "build_athlete_summary",
    "AthleteSummary",
]
