from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from fastagi.agi.protocol import AgiError

# EXEC result when the dialplan application is not loaded
APP_NOT_FOUND = "-2"


class MrcpNotLoadedError(AgiError):
    code = "E_MRCP_NOT_LOADED"


@dataclass(frozen=True)
class RecognitionResult:
    status: str  # RECOG_STATUS: OK | ERROR | INTERRUPTED
    cause: int  # RECOG_COMPLETION_CAUSE: 0 success, 1 no match, 2 no input
    result: str  # RECOG_RESULT: raw NLSML from the MRCP server


@dataclass(frozen=True)
class RecognitionInterpretation:
    confidence: int  # 0-100
    input: str
    grammar: str


@dataclass(frozen=True)
class SynthResult:
    status: str  # SYNTHSTATUS: OK | ERROR | INTERRUPTED
    cause: int  # SYNTH_COMPLETION_CAUSE: 0 normal, 1 barge-in, 2 parse failure


def _int_var(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"failed to parse {name} ({raw!r}) as an integer") from e


class MrcpCommands:
    """UniMRCP helpers (requires the UniMRCP apps loaded in Asterisk); mixed into Session."""

    exec: Callable[..., str]
    get: Callable[[str], str]

    def _exec_mrcp(self, app: str, *args: str) -> None:
        if self.exec(app, *[a for a in args if a]) == APP_NOT_FOUND:
            raise MrcpNotLoadedError("MRCP applications not loaded")

    def _recognition_result(self, combo: bool) -> RecognitionResult:
        # SynthAndRecog stores the status under a different name than MRCPRecog
        status = self.get("RECOG_STATUS" if combo else "RECOGSTATUS")
        cause = _int_var("RECOG_COMPLETION_CAUSE", self.get("RECOG_COMPLETION_CAUSE"))
        return RecognitionResult(status=status, cause=cause, result=self.get("RECOG_RESULT"))

    def mrcp_synth(self, prompt: str, opts: str = "") -> SynthResult:
        self._exec_mrcp("MRCPSynth", prompt, opts)
        status = self.get("SYNTHSTATUS")
        cause = _int_var("SYNTH_COMPLETION_CAUSE", self.get("SYNTH_COMPLETION_CAUSE"))
        return SynthResult(status=status, cause=cause)

    def mrcp_recog(self, grammar: str, opts: str = "") -> RecognitionResult:
        self._exec_mrcp("MRCPRecog", grammar, opts)
        return self._recognition_result(combo=False)

    def synth_and_recog(self, prompt: str, grammar: str, opts: str = "") -> RecognitionResult:
        self._exec_mrcp("SynthAndRecog", ",".join([f'"{prompt}"', grammar, opts]))
        return self._recognition_result(combo=True)

    def recognition_input(self, index: int = 0) -> str:
        """Detected input of the last recognition; index 0 is the best match."""
        return self.get(f"RECOG_INPUT({index})")

    def recognition_confidence(self, index: int = 0) -> int:
        return _int_var("RECOG_CONFIDENCE", self.get(f"RECOG_CONFIDENCE({index})"))

    def recognition_grammar(self, index: int = 0) -> str:
        return self.get(f"RECOG_GRAMMAR({index})")

    def recognition_interpretation(self, index: int = 0) -> RecognitionInterpretation:
        return RecognitionInterpretation(
            input=self.recognition_input(index),
            confidence=self.recognition_confidence(index),
            grammar=self.recognition_grammar(index),
        )
