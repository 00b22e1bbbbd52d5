"""Build a ``Model`` from a Standard MIDI File.

Times are metrical: a tick becomes ``tick / (4 * ticks_per_quarter)`` of a
whole note and tempo changes are ignored. Each track is a performer (named by
its track-name meta event when present), each channel an instrument.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from fractions import Fraction
from pathlib import Path
from typing import Any

from musical_model.attributes import Dynamic, Pitch
from musical_model.builder import ModelBuilder
from musical_model.configuration import merge_config
from musical_model.meter import Meter, MeterStructure
from musical_model.metrical_time import MetricalDuration, MetricalInterval
from musical_model.model import Context, Model
from musical_model.performance import PerformanceContext

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _MidiNote:
    start_tick: int
    end_tick: int
    channel: int
    note: int
    velocity: int


@dataclass
class _TrackData:
    name: str | None = None
    notes: list[_MidiNote] = field(default_factory=list)
    # (tick, numerator, denominator)
    time_signatures: list[tuple[int, int, int]] = field(default_factory=list)
    end_tick: int = 0


def _read_u16_be(data: bytes, offset: int) -> tuple[int, int]:
    if offset + 2 > len(data):
        raise ValueError("Unexpected EOF while reading u16.")
    return int.from_bytes(data[offset : offset + 2], "big"), offset + 2


def _read_u32_be(data: bytes, offset: int) -> tuple[int, int]:
    if offset + 4 > len(data):
        raise ValueError("Unexpected EOF while reading u32.")
    return int.from_bytes(data[offset : offset + 4], "big"), offset + 4


def _read_var_len(data: bytes, offset: int) -> tuple[int, int]:
    value = 0
    for _ in range(4):
        if offset >= len(data):
            raise ValueError("Unexpected EOF while reading var-len integer.")
        b = data[offset]
        offset += 1
        value = (value << 7) | (b & 0x7F)
        if (b & 0x80) == 0:
            return value, offset
    raise ValueError("Invalid var-len integer (too long).")


def _pair_notes(
    note_events: list[tuple[int, int, int, int, int]],
    end_tick: int,
) -> list[_MidiNote]:
    """Match note-on/off events first-in first-out per (channel, note)."""
    note_events.sort(key=lambda ev: (ev[0], 0 if ev[1] == 0 else 1))
    active: dict[tuple[int, int], list[tuple[int, int]]] = {}
    notes: list[_MidiNote] = []

    for tick, kind, channel, note, velocity in note_events:
        key = (channel, note)
        if kind == 1:
            active.setdefault(key, []).append((tick, velocity))
            continue
        queue = active.get(key)
        if not queue:
            continue
        start_tick, start_velocity = queue.pop(0)
        if not queue:
            del active[key]
        notes.append(_MidiNote(start_tick, tick, channel, note, start_velocity))

    for (channel, note), queue in active.items():
        for start_tick, start_velocity in queue:
            notes.append(_MidiNote(start_tick, end_tick, channel, note, start_velocity))

    notes.sort(key=lambda n: (n.start_tick, n.channel, n.note, n.end_tick))
    return notes


def _parse_track(track: bytes) -> _TrackData:
    offset = 0
    abs_tick = 0
    running_status: int | None = None
    note_events: list[tuple[int, int, int, int, int]] = []
    data = _TrackData()

    while offset < len(track):
        delta, offset = _read_var_len(track, offset)
        abs_tick += delta
        if offset >= len(track):
            break

        first_data_byte: int | None = None
        status = track[offset]
        if status < 0x80:
            if running_status is None:
                raise ValueError("Running-status data byte encountered without status.")
            first_data_byte = status
            status = running_status
        else:
            offset += 1
            running_status = status if status < 0xF0 else None

        if status == 0xFF:
            if offset >= len(track):
                raise ValueError("Unexpected EOF in meta event.")
            meta_type = track[offset]
            offset += 1
            size, offset = _read_var_len(track, offset)
            payload = track[offset : offset + size]
            if len(payload) != size:
                raise ValueError("Unexpected EOF in meta payload.")
            offset += size
            if meta_type == 0x03 and data.name is None:
                data.name = payload.decode("latin-1").strip() or None
            elif meta_type == 0x58 and size >= 2:
                data.time_signatures.append((abs_tick, payload[0], 2 ** payload[1]))
            elif meta_type == 0x2F:
                break
            continue

        if status in (0xF0, 0xF7):
            size, offset = _read_var_len(track, offset)
            if offset + size > len(track):
                raise ValueError("Unexpected EOF in sysex event.")
            offset += size
            continue

        message_type = status & 0xF0
        channel = status & 0x0F
        needed = 1 if message_type in (0xC0, 0xD0) else 2
        if message_type not in (0x80, 0x90, 0xA0, 0xB0, 0xC0, 0xD0, 0xE0):
            raise ValueError(f"Unsupported MIDI status byte: 0x{status:02X}")

        values: list[int] = [] if first_data_byte is None else [first_data_byte]
        while len(values) < needed:
            if offset >= len(track):
                raise ValueError("Unexpected EOF in MIDI event data.")
            values.append(track[offset])
            offset += 1

        if message_type == 0x80:
            note_events.append((abs_tick, 0, channel, values[0], values[1]))
        elif message_type == 0x90:
            kind = 0 if values[1] == 0 else 1
            note_events.append((abs_tick, kind, channel, values[0], values[1]))

    data.end_tick = abs_tick
    data.notes = _pair_notes(note_events, abs_tick)
    return data


def _tick_to_duration(tick: int, ticks_per_quarter: int) -> MetricalDuration:
    return MetricalDuration.from_fraction(Fraction(tick, 4 * ticks_per_quarter))


def _build_meter_structure(
    time_signatures: list[tuple[int, int, int]],
    end_tick: int,
    ticks_per_quarter: int,
) -> MeterStructure | None:
    if not time_signatures:
        return None

    changes: list[tuple[int, Meter]] = []
    for tick, beats, subdivision in sorted(time_signatures, key=lambda ts: ts[0]):
        meter = Meter(beats, subdivision)
        if changes and changes[-1][0] == tick:
            changes[-1] = (tick, meter)
        else:
            changes.append((tick, meter))
    if changes[0][0] != 0:
        changes.insert(0, (0, Meter(4, 4)))

    meters: list[Meter] = []
    for i, (tick, meter) in enumerate(changes):
        measure_ticks = meter.duration.fraction * 4 * ticks_per_quarter
        if i + 1 == len(changes):
            # The last meter runs to the end of the piece, rounded up to whole measures.
            count = max(1, math.ceil((max(end_tick, tick) - tick) / measure_ticks))
            meters.extend([meter] * count)
            continue
        span = changes[i + 1][0] - tick
        meters.extend([meter] * int(span // measure_ticks))
        # A change that lands mid-measure closes the meter with a partial measure
        # of whole beats.
        remainder = Fraction(span % measure_ticks) * meter.subdivision / (4 * ticks_per_quarter)
        if remainder:
            meters.append(Meter(math.ceil(remainder), meter.subdivision))
    return MeterStructure(tuple(meters))


def _add_track(
    builder: ModelBuilder,
    performer: str,
    track: _TrackData,
    ticks_per_quarter: int,
    import_config: dict[str, Any],
) -> None:
    groups: dict[tuple[int, ...], list[_MidiNote]] = {}
    for note in track.notes:
        key: tuple[int, ...] = (note.channel, note.start_tick, note.end_tick)
        if not import_config["group_chords"]:
            key = key + (note.note,)
        groups.setdefault(key, []).append(note)

    for notes in groups.values():
        first = notes[0]
        performance = PerformanceContext(performer=performer, instrument=f"ch{first.channel}")
        start = _tick_to_duration(first.start_tick, ticks_per_quarter)
        end = _tick_to_duration(first.end_tick, ticks_per_quarter)
        context = Context(MetricalInterval(start, end), performance)
        pitches = [Pitch(float(n.note)) for n in sorted(notes, key=lambda n: n.note)]
        if len(pitches) > 1:
            builder.add_event(pitches, context)
        else:
            builder.add(pitches[0], context)
        if import_config["include_dynamics"]:
            velocity = max(n.velocity for n in notes)
            builder.add(Dynamic.from_velocity(velocity), Context(MetricalInterval(start, start), performance))


def parse_midi_model(data: bytes, config: dict[str, Any] | None = None) -> Model:
    import_config = merge_config(config or {})["import"]
    offset = 0

    if data[offset : offset + 4] != b"MThd":
        raise ValueError("Invalid MIDI header chunk.")
    offset += 4
    header_len, offset = _read_u32_be(data, offset)
    if header_len < 6:
        raise ValueError("Invalid MIDI header length.")
    fmt, offset = _read_u16_be(data, offset)
    n_tracks, offset = _read_u16_be(data, offset)
    division, offset = _read_u16_be(data, offset)
    offset += header_len - 6

    if fmt not in (0, 1):
        raise ValueError(f"Unsupported MIDI format: {fmt}")
    if division & 0x8000:
        raise ValueError("SMPTE time division is not supported.")
    ticks_per_quarter = int(division)
    if ticks_per_quarter <= 0:
        raise ValueError("Invalid ticks-per-quarter value.")

    tracks: list[_TrackData] = []
    for _ in range(n_tracks):
        if data[offset : offset + 4] != b"MTrk":
            raise ValueError("Invalid MIDI track chunk header.")
        offset += 4
        track_len, offset = _read_u32_be(data, offset)
        track = data[offset : offset + track_len]
        if len(track) != track_len:
            raise ValueError("Unexpected EOF while reading MIDI track.")
        offset += track_len
        tracks.append(_parse_track(track))

    builder = ModelBuilder()
    for idx, track in enumerate(tracks):
        performer = track.name or f"{import_config['performer_prefix']} {idx + 1}"
        _add_track(builder, performer, track, ticks_per_quarter, import_config)
        logger.debug("Imported %d notes for performer %r.", len(track.notes), performer)

    end_tick = max((t.end_tick for t in tracks), default=0)
    time_signatures = [ts for t in tracks for ts in t.time_signatures]
    builder.set_meter_structure(_build_meter_structure(time_signatures, end_tick, ticks_per_quarter))

    logger.debug("Parsed %d MIDI tracks at %d ticks per quarter.", len(tracks), ticks_per_quarter)
    return builder.build()


def load_midi_model(path: str | Path, config: dict[str, Any] | None = None) -> Model:
    return parse_midi_model(Path(path).read_bytes(), config=config)
