"""Work out the sounding pitch of each string for a fret and a control combination."""

from collections.abc import Iterable

from steelchord.copedent import Copedent, GuitarString
from steelchord.notes import Pitch
from steelchord.voicing import VoicingNote


def resolve_string(
    guitar_string: GuitarString,
    copedent: Copedent,
    control_ids: tuple[str, ...],
    root: Pitch,
    fret: int,
) -> VoicingNote:
    """
    Resolve one string.

    A single affecting control applies its change. Two or more consult the
    copedent's split for exactly that control set: an included split applies
    its manual change, any other policy mutes the string. With no matching
    split the individual changes are summed.
    """
    affecting = []
    for control_id in control_ids:
        control = copedent.control(control_id)
        if control is not None and control.change_for(guitar_string.id) != 0:
            affecting.append(control)

    muted = False
    change = 0
    if len(affecting) > 1:
        split = copedent.find_split(guitar_string.id, frozenset(c.id for c in affecting))
        if split is None:
            change = sum(c.change_for(guitar_string.id) for c in affecting)
        elif split.is_included:
            change = split.manual_change
        else:
            muted = True
    elif affecting:
        change = affecting[0].change_for(guitar_string.id)

    pitch = None if muted else guitar_string.open_pitch.offset(fret + change)
    return VoicingNote(
        string_id=guitar_string.id,
        open_pitch=guitar_string.open_pitch,
        fret=fret,
        active_controls=tuple(c.id for c in affecting),
        pitch=pitch,
        semitones_from_root=root.semitones_to(pitch) if pitch is not None else None,
        is_muted=muted,
    )


def resolve_fretted_notes(
    strings: Iterable[GuitarString],
    copedent: Copedent,
    pedal_ids: Iterable[str],
    lever_ids: Iterable[str],
    mechanism_ids: Iterable[str],
    root: Pitch,
    fret: int,
) -> list[VoicingNote]:
    """
    Resolve every given string at ``fret`` with the given controls engaged.

    Args:
        strings:       Strings to resolve (all of the copedent's, or a subset).
        copedent:      Supplies control change maps and declared splits.
        pedal_ids:     Pressed pedals.
        lever_ids:     Engaged knee levers.
        mechanism_ids: Engaged mechanisms.
        root:          Chord root; every sounding note records its distance from it.
        fret:          Bar position.

    Returns:
        One VoicingNote per string, neither chord tone nor played yet.
    """
    control_ids = (*pedal_ids, *lever_ids, *mechanism_ids)
    return [resolve_string(s, copedent, control_ids, root, fret) for s in strings]
