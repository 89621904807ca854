"""
Device identification and channel naming

This module maps an LSL stream's advertised source id and name onto a known
EEG device family, providing electrode names and manufacturer/model strings.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from ..core.data_types import StreamCandidate

UNKNOWN_MANUFACTURER = "Unknown Manufacturer"
UNKNOWN_MODEL = "EEG Device"


@dataclass(frozen=True)
class DeviceFamily:
    """A known device family and its electrode layouts"""
    key: str
    keywords: Tuple[str, ...]              # Lowercase substrings of source id / stream name
    manufacturer: str
    model: str
    aliases: Tuple[str, ...] = ()          # Exact (lowercase) stream names known to be this family
    # Layouts keyed by the largest channel count they apply to, ascending
    layouts: Dict[int, Tuple[str, ...]] = field(default_factory=dict)

    def matches(self, source_id: str, name: str) -> bool:
        source_id = source_id.lower()
        name = name.lower()
        if name in self.aliases:
            return True
        return any(kw in source_id or kw in name for kw in self.keywords)

    def layout_for(self, channel_count: int) -> Tuple[str, ...]:
        if not self.layouts:
            return ()
        for max_channels in sorted(self.layouts):
            if channel_count <= max_channels:
                return self.layouts[max_channels]
        return self.layouts[max(self.layouts)]


# Evaluated in order, first match wins
DEVICE_FAMILIES: List[DeviceFamily] = [
    DeviceFamily(
        key="unicorn",
        keywords=("unicorn",),
        aliases=("123",),
        manufacturer="g.tec medical engineering GmbH",
        model="Unicorn Hybrid Black",
        layouts={17: (
            "Fz", "C3", "Cz", "C4", "Pz", "PO7", "Oz", "PO8",
            "ACC_X", "ACC_Y", "ACC_Z", "GYR_X", "GYR_Y", "GYR_Z",
            "Battery", "Counter", "Validation",
        )},
    ),
    DeviceFamily(
        key="openbci",
        keywords=("openbci",),
        manufacturer="OpenBCI",
        model="Cyton Board",
        layouts={
            8: ("Fp1", "Fp2", "C3", "C4", "P7", "P8", "O1", "O2"),
            16: ("Fp1", "Fp2", "F7", "F3", "F4", "F8", "C3", "Cz",
                 "C4", "T7", "T8", "P7", "P3", "Pz", "P4", "P8"),
        },
    ),
    DeviceFamily(
        key="emotiv",
        keywords=("emotiv",),
        manufacturer="Emotiv Inc.",
        model="EPOC+",
        layouts={14: ("AF3", "F7", "F3", "FC5", "T7", "P7", "O1", "O2",
                      "P8", "T8", "FC6", "F4", "F8", "AF4")},
    ),
    DeviceFamily(
        key="neurosky",
        keywords=("neurosky",),
        manufacturer="NeuroSky",
        model="MindWave",
    ),
    DeviceFamily(
        key="muse",
        keywords=("muse",),
        manufacturer="InteraXon",
        model="Muse Headband",
        layouts={5: ("TP9", "AF7", "AF8", "TP10", "Right AUX")},
    ),
]


def identify_device(source_id: str, name: str) -> Optional[DeviceFamily]:
    """
    Identify the device family behind a stream

    Args:
        source_id: Advertised LSL source id
        name: Advertised stream name

    Returns:
        Optional[DeviceFamily]: First matching family, or None for unknown devices
    """
    for family in DEVICE_FAMILIES:
        if family.matches(source_id, name):
            return family
    return None


def channel_names_for(family: Optional[DeviceFamily], channel_count: int) -> List[str]:
    """
    Build exactly channel_count channel names

    Known layouts fill the leading names; the rest get generic 1-based ChN names.
    """
    channel_count = max(int(channel_count), 0)
    layout = family.layout_for(channel_count) if family is not None else ()
    names = list(layout[:channel_count])
    while len(names) < channel_count:
        names.append(f"Ch{len(names) + 1}")
    return names


def device_info(family: Optional[DeviceFamily]) -> Tuple[str, str]:
    """Return (manufacturer, model) for a family, with the unknown-device default"""
    if family is None:
        return UNKNOWN_MANUFACTURER, UNKNOWN_MODEL
    return family.manufacturer, family.model


def match_alias(target: str, candidate: StreamCandidate) -> bool:
    """True if target is a vendor name or alias of the candidate's device family"""
    target = target.strip().lower()
    if not target:
        return False
    family = identify_device(candidate.source_id, candidate.name)
    if family is None:
        return False
    return target == family.key or target in family.keywords or target in family.aliases


def print_stream_table(candidates: Sequence[StreamCandidate]) -> None:
    """Print discovered streams with their detected device"""
    if not candidates:
        print("No LSL streams found")
        return

    print(f"Found {len(candidates)} LSL stream(s):")
    print("-" * 72)
    for candidate in candidates:
        family = identify_device(candidate.source_id, candidate.name)
        manufacturer, model = device_info(family)
        print(f"{candidate.name:20} {candidate.stream_type:8} {candidate.channel_count:3d} ch "
              f"@ {candidate.sample_rate:6.1f} Hz  source: {candidate.source_id}")
        print(f"{'':20} device: {manufacturer} / {model}")
    logging.debug(f"Listed {len(candidates)} streams")
