"""
Colour range registry.

Holds the named ColorBands that the candidate extractor thresholds against.
Registration order is significant: it is the tie-break order used when two
bands produce equally scored candidates.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence

from models.color_band import DEFAULT_BANDS, EMPTY_RANGE, ColorBand


class ColorRangeRegistry:
    """
    Ordered band-name -> ColorBand mapping, one instance per session.

    Written only by calibration, read by extraction. Both run on the frame
    loop, so no locking is done here.
    """

    def __init__(self, bands: Optional[Iterable[ColorBand]] = None):
        self._bands: "OrderedDict[str, ColorBand]" = OrderedDict()
        for band in (DEFAULT_BANDS if bands is None else bands):
            self.register(band)

    def register(self, band: ColorBand) -> None:
        if band.key in self._bands:
            raise ValueError(f"Colour band already registered: {band.key}")
        self._bands[band.key] = band

    def get(self, key: str) -> ColorBand:
        try:
            return self._bands[key]
        except KeyError:
            raise KeyError(f"Unknown colour band: {key}") from None

    def update(
        self,
        key: str,
        low: Sequence[float],
        high: Sequence[float],
        low2: Sequence[float] = EMPTY_RANGE,
        high2: Sequence[float] = EMPTY_RANGE,
    ) -> ColorBand:
        """Replace the thresholds of an existing band; other bands are untouched."""
        band = self.get(key).with_bounds(low, high, low2, high2)
        self._bands[key] = band
        logging.debug(
            f"Band {key} updated: low={band.low} high={band.high} "
            f"low2={band.low2} high2={band.high2}"
        )
        return band

    def names(self) -> List[str]:
        return list(self._bands.keys())

    def snapshot(self) -> Dict[str, Dict[str, Any]]:
        """Plain-dict copy of every band, in registry order."""
        return {key: band.to_dict() for key, band in self._bands.items()}

    def __iter__(self) -> Iterator[ColorBand]:
        return iter(list(self._bands.values()))

    def __len__(self) -> int:
        return len(self._bands)

    def __contains__(self, key: object) -> bool:
        return key in self._bands

    @classmethod
    def from_config(cls, bands_cfg: Optional[List[Dict[str, Any]]]) -> "ColorRangeRegistry":
        """
        Build a registry from the `detection.color_shape.bands` list.

        None or an empty list gives the default tennis/red/white bands.
        """
        if not bands_cfg:
            return cls()
        return cls(ColorBand.from_dict(d) for d in bands_cfg)
