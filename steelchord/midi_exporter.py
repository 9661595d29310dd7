"""MidiExporter: writes a voiced progression to a Standard MIDI File."""

from collections.abc import Sequence

from midiutil import MIDIFile

from steelchord.voicing import Voicing

# Format 1 MIDI: track 0 is the conductor/tempo track and never receives notes.
TRACK_CONDUCTOR = 0
TRACK_STEEL = 1

CHANNEL_STEEL = 0


class MidiExporter:
    """
    Writes one chord per voicing, each held for a fixed number of beats.

    Track layout (Format 1, 2 internal tracks)
    ------------------------------------------
    Track 0: conductor track (tempo only, no notes)

    Track 1 "Pedal Steel": the played pitches of each voicing. Muted and
    unplayed strings are left out.
    """

    DEFAULT_TEMPO = 80     # BPM
    DEFAULT_VELOCITY = 80  # MIDI velocity (0-127)
    DEFAULT_BEATS_PER_CHORD = 4

    def __init__(
        self,
        tempo: int = DEFAULT_TEMPO,
        beats_per_chord: float = DEFAULT_BEATS_PER_CHORD,
        velocity: int = DEFAULT_VELOCITY,
    ) -> None:
        """
        Args:
            tempo:           Playback tempo in beats per minute.
            beats_per_chord: How long each chord is held.
            velocity:        MIDI note-on velocity.
        """
        self.tempo = tempo
        self.beats_per_chord = beats_per_chord
        self.velocity = velocity

    def export(self, voicings: Sequence[Voicing], output_path: str) -> None:
        """
        Render voicings to a Standard MIDI File (SMF format 1).

        Args:
            voicings:    Voicings in playing order.
            output_path: Destination file path (e.g. "progression.mid").

        Raises:
            OSError: If the output file cannot be opened for writing.
        """
        midi = MIDIFile(numTracks=2, removeDuplicates=False, deinterleave=False)
        midi.addTempo(TRACK_CONDUCTOR, 0, self.tempo)
        midi.addTrackName(TRACK_STEEL, 0, "Pedal Steel")

        for index, voicing in enumerate(voicings):
            start_beat = index * self.beats_per_chord
            for pitch in voicing.midi_notes():
                midi.addNote(
                    track=TRACK_STEEL,
                    channel=CHANNEL_STEEL,
                    pitch=pitch,
                    time=start_beat,
                    duration=self.beats_per_chord,
                    volume=self.velocity,
                )

        with open(output_path, "wb") as f:
            midi.writeFile(f)
