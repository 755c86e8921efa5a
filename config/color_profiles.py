"""
Color profile tables for blood and sample-content classification.

Both tables are ordered. The classifier walks them top-down and the first
profile whose hue, saturation and lightness ranges all match wins, so the order
is part of the table contract: Bright Red is checked before Maroon, and
Black (Tarry) comes last because its hue range covers the whole circle.

Ranges are in HSL units: hue in degrees (0-360), saturation and lightness in
percent (0-100). A hue range with h_min > h_max wraps through 0.
"""

from typing import Dict, Tuple

from services.interfaces import ColorProfile, ContentProfile

# Blood in urine/stool spans a spectrum:
#   Bright red    -> fresh blood (urinary tract / lower GI)
#   Dark red      -> older blood
#   Maroon, brown -> partially digested blood (upper GI)
#   Black (tarry) -> heavily digested blood (melena)
BLOOD_PROFILES: Tuple[ColorProfile, ...] = (
    ColorProfile(
        label='Bright Red',
        h_min=0, h_max=15, s_min=45, s_max=100, l_min=25, l_max=55,
        color='#ef4444', severity='urgent', shape='circle', hatch='diagonal'
    ),
    ColorProfile(
        label='Dark Red',
        h_min=340, h_max=360, s_min=40, s_max=100, l_min=15, l_max=40,
        color='#991b1b', severity='urgent', shape='triangle', hatch='crosshatch'
    ),
    ColorProfile(
        label='Maroon',
        h_min=0, h_max=20, s_min=30, s_max=80, l_min=10, l_max=25,
        color='#7f1d1d', severity='warning', shape='square', hatch='horizontal'
    ),
    ColorProfile(
        label='Brown Blood',
        h_min=15, h_max=40, s_min=25, s_max=70, l_min=8, l_max=22,
        color='#b45309', severity='warning', shape='diamond', hatch='vertical'
    ),
    ColorProfile(
        label='Black (Tarry)',
        h_min=0, h_max=360, s_min=0, s_max=30, l_min=2, l_max=10,
        color='#1f2937', severity='caution', shape='cross', hatch='dots'
    ),
)

# Amber urine is listed before Brown Stool so the bright, saturated overlap
# (hue 28-40, lightness 40-45) reads as urine.
CONTENT_PROFILES: Tuple[ContentProfile, ...] = (
    ContentProfile(
        label='Pale/Yellow Urine', content='urine',
        h_min=40, h_max=65, s_min=25, s_max=100, l_min=40, l_max=85
    ),
    ContentProfile(
        label='Amber Urine', content='urine',
        h_min=28, h_max=40, s_min=50, s_max=100, l_min=40, l_max=70
    ),
    ContentProfile(
        label='Brown Stool', content='stool',
        h_min=15, h_max=40, s_min=20, s_max=70, l_min=18, l_max=45
    ),
    ContentProfile(
        label='Dark Stool', content='stool',
        h_min=10, h_max=45, s_min=10, s_max=50, l_min=10, l_max=20
    ),
)

# Most severe first
SEVERITY_ORDER: Tuple[str, ...] = ('urgent', 'warning', 'caution')

SEVERITY_INFO: Dict[str, Dict[str, str]] = {
    'urgent': {
        'title': 'Urgent',
        'description': (
            'Bright or dark red blood may indicate bleeding in the urinary or lower '
            'digestive tract. Consult a doctor promptly.'
        ),
    },
    'warning': {
        'title': 'Warning',
        'description': (
            'Maroon or brown coloring may indicate blood that has been partially '
            'digested, possibly from the upper GI tract.'
        ),
    },
    'caution': {
        'title': 'Caution',
        'description': (
            'Very dark or tarry (black) stool may indicate upper GI bleeding (melena). '
            'Medical evaluation is recommended.'
        ),
    },
}

ADVISORY_NOTE: str = (
    'This is a screening aid only. Always consult a healthcare professional for diagnosis.'
)
