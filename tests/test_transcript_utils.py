import asyncio
from types import SimpleNamespace

import pytest
from youtube_transcript_api import NoTranscriptFound, TranscriptsDisabled

from summer.services.content.transcript_utils import TranscriptSource
from summer.utils.errors import ErrorKind, UpstreamError


class FakeTranscript:
    def __init__(self, language_code, lines):
        self.language_code = language_code
        self._lines = lines

    def fetch(self):
        return [SimpleNamespace(text=line) for line in self._lines]


class FakeTranscriptList:
    def __init__(self, transcripts):
        self._transcripts = transcripts

    def __iter__(self):
        return iter(self._transcripts)

    def find_transcript(self, languages):
        for transcript in self._transcripts:
            if transcript.language_code in languages:
                return transcript
        raise NoTranscriptFound("vid", languages, None)


def _source(mocker, transcripts=None, error=None):
    api = mocker.Mock()
    if error is not None:
        api.list.side_effect = error
    else:
        api.list.return_value = FakeTranscriptList(transcripts)
    return TranscriptSource(["en"], api=api)


def test_preferred_language_is_used(mocker):
    source = _source(
        mocker,
        [FakeTranscript("de", ["hallo"]), FakeTranscript("en", ["hello", "world"])],
    )
    result = asyncio.run(source.fetch("vid"))
    assert result.fragments == ["hello", "world"]
    assert result.language == "en"


def test_any_language_when_preferred_missing(mocker):
    source = _source(mocker, [FakeTranscript("es", ["hola"])])
    result = asyncio.run(source.fetch("vid"))
    assert result.fragments == ["hola"]
    assert result.language == "es"


def test_no_transcripts_at_all(mocker):
    assert asyncio.run(_source(mocker, []).fetch("vid")) is None


def test_disabled_captions_mean_absence(mocker):
    source = _source(mocker, error=TranscriptsDisabled("vid"))
    assert asyncio.run(source.fetch("vid")) is None


def test_other_failures_are_upstream_errors(mocker):
    source = _source(mocker, error=ConnectionError("reset by peer"))
    with pytest.raises(UpstreamError) as exc_info:
        asyncio.run(source.fetch("vid"))
    assert exc_info.value.kind is ErrorKind.TRANSIENT
