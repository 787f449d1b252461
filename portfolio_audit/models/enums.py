from enum import Enum


class Sport(str, Enum):
    FOOTBALL = "FOOTBALL"
    BASKETBALL = "BASKETBALL"


class MarketType(str, Enum):
    WDL = "WDL"  # Win / Draw / Loss
    WDHL = "WDHL"  # Handicap Win / Draw / Loss
    CS = "CS"  # Correct score
    TG = "TG"  # Total goals
    TOTALS = "TOTALS"  # Over / Under (basketball total points)


class SourceKind(str, Enum):
    PRIMARY_OFFICIAL = "PRIMARY_OFFICIAL"
    SECONDARY_INTERNATIONAL = "SECONDARY_INTERNATIONAL"


class CatalogOrigin(str, Enum):
    LIVE = "LIVE"
    STATIC = "STATIC"  # Providers answered with no data
    ERROR_FALLBACK = "ERROR_FALLBACK"  # Acquisition path failed outright


class AuditStatus(str, Enum):
    PASS = "PASS"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class RiskLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class OptimizationType(str, Enum):
    SAFETY_NET = "SAFETY_NET"
    PIVOT = "PIVOT"
