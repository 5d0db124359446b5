"""
ocpkit - Zentralisierte Toleranz-Konfiguration
==============================================

Alle Toleranzen an einem Ort.

Toleranz-Philosophie:
- CAD-Kernel (OCP): 1e-4 (Boolean fuzzy value)
- Tessellation: 1e-2 linear / 0.5 rad angular
- Vergleich: 1e-6 (Punkt-/Längen-Gleichheit)

Verwendung:
    from ocpkit.config.tolerances import Tolerances

    fuzzy = Tolerances.KERNEL_FUZZY

    # Oder via Convenience-Funktionen
    from ocpkit.config.tolerances import kernel_tolerance
    fuzzy = kernel_tolerance()
"""


class Tolerances:
    """
    Zentrale Toleranz-Konstanten für ocpkit.

    Kategorien:
    - KERNEL_*: CAD-Kernel Operationen (Boolean, Fillet, Shell, Loft)
    - TESSELLATION_*: Mesh-Generierung
    - COMPARE_*: Gleichheits-Checks
    - EPSILON_*: Numerische Stabilität
    """

    # =========================================================================
    # CAD-Kernel (Boolean, Fillet, Shell, Loft)
    # =========================================================================

    # Fuzzy-Toleranz für Boolean-Operationen
    # Zu klein (1e-7) = Operationen schlagen fehl
    # Zu groß (1e-2) = Ungenauigkeiten
    KERNEL_FUZZY = 1e-4

    # Interne Kernel-Präzision (Degenerations-Checks, ShapeFix)
    KERNEL_PRECISION = 1e-6

    # Minimale Volumenänderung damit ein Cut als "hat geschnitten" gilt
    KERNEL_MIN_VOLUME_CHANGE = 1e-6

    # Default-Toleranz für BRepOffsetAPI_MakeThickSolid
    SHELL_TOLERANCE = 1e-3

    # 3D-Präzision für BRepOffsetAPI_ThruSections
    LOFT_PRECISION = 1e-6

    # Oberhalb dieser Shape-Toleranz wird nach Booleans gewarnt
    KERNEL_TOLERANCE_WARNING = 1e-3

    # =========================================================================
    # Tessellation (Mesh-Generierung)
    # =========================================================================

    # Lineare Abweichung (Chord Height)
    # Kleinere Werte = mehr Dreiecke
    TESSELLATION_QUALITY = 0.01

    # Winkel-Abweichung in Radians
    TESSELLATION_ANGULAR = 0.5

    # =========================================================================
    # Parameterraum
    # =========================================================================

    # Anzahl Samples beim Prüfen ob eine 2D-Kurve im Surface-Bereich liegt
    PCURVE_SAMPLES = 32

    # =========================================================================
    # Mathematische Epsilon-Werte (Numerische Stabilität)
    # =========================================================================

    EPSILON_MATH = 1e-9

    # =========================================================================
    # Vergleichs-Toleranzen
    # =========================================================================

    COMPARE_POINT = 1e-6
    COMPARE_LENGTH = 1e-6


# =============================================================================
# Convenience-Funktionen
# =============================================================================

def kernel_tolerance() -> float:
    """Gibt die Standard-Kernel-Toleranz zurück."""
    return Tolerances.KERNEL_FUZZY


def tessellation_quality() -> float:
    """Gibt die Standard-Tessellations-Qualität zurück."""
    return Tolerances.TESSELLATION_QUALITY


def tessellation_angular() -> float:
    """Gibt die Standard-Winkelabweichung für Tessellation zurück."""
    return Tolerances.TESSELLATION_ANGULAR


# =============================================================================
# Toleranz-Validierung (für Debugging)
# =============================================================================

def validate_tolerances():
    """
    Validiert dass alle Toleranzen sinnvolle Werte haben.
    Nützlich für Tests und Debugging.
    """
    issues = []

    # Kernel-Toleranz sollte zwischen 1e-6 und 1e-2 liegen
    if not (1e-6 <= Tolerances.KERNEL_FUZZY <= 1e-2):
        issues.append(f"KERNEL_FUZZY außerhalb sinnvoller Grenzen: {Tolerances.KERNEL_FUZZY}")

    # Präzision muss feiner sein als die Fuzzy-Toleranz
    if Tolerances.KERNEL_PRECISION > Tolerances.KERNEL_FUZZY:
        issues.append(
            f"KERNEL_PRECISION ({Tolerances.KERNEL_PRECISION}) gröber als KERNEL_FUZZY ({Tolerances.KERNEL_FUZZY})"
        )

    if not (0.001 <= Tolerances.TESSELLATION_QUALITY <= 0.1):
        issues.append(f"TESSELLATION_QUALITY außerhalb sinnvoller Grenzen: {Tolerances.TESSELLATION_QUALITY}")

    if not (0.0 < Tolerances.TESSELLATION_ANGULAR < 3.14159):
        issues.append(f"TESSELLATION_ANGULAR außerhalb sinnvoller Grenzen: {Tolerances.TESSELLATION_ANGULAR}")

    return issues


# Automatische Validierung beim Import (nur Warnung, kein Fehler)
_validation_issues = validate_tolerances()
if _validation_issues:
    from loguru import logger
    for issue in _validation_issues:
        logger.warning(f"Toleranz-Validierung: {issue}")
