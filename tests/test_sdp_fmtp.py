"""Tests for fmtp parsing and parameter editing."""

import pytest

from rtcsig.sdp.fmtp import (
    FmtpRecord,
    find_fmtp_line,
    parse_fmtp_line,
    remove_codec_param,
    set_codec_param,
    write_fmtp_line,
)
from rtcsig.sdp.payload import PayloadType
from tests.sdp_samples import crlf


class TestFmtpLine:
    """Test fmtp line parse/write."""

    def test_parse(self) -> None:
        """Payload type and key/value parameters are split out."""
        record = parse_fmtp_line("a=fmtp:111 minptime=10;useinbandfec=1")
        assert record.payload_type == "111"
        assert isinstance(record.payload_type, PayloadType)
        assert record.params == {"minptime": "10", "useinbandfec": "1"}

    def test_malformed_pairs_dropped(self) -> None:
        """Pieces that are not key=value are ignored."""
        record = parse_fmtp_line("a=fmtp:111 minptime=10;bogus;a=b=c")
        assert record.params == {"minptime": "10"}

    def test_no_parameters(self) -> None:
        """A red-style fmtp line has no key=value parameters."""
        record = parse_fmtp_line("a=fmtp:116 117/117")
        assert record.payload_type == "116"
        assert record.params == {}
        assert parse_fmtp_line("a=fmtp:116").params == {}

    @pytest.mark.parametrize("line", ["a=fmtp:abc x=1", "a=rtpmap:111 opus/48000", "fmtp:111 x=1"])
    def test_not_an_fmtp_line(self, line: str) -> None:
        """Lines without a=fmtp:<digits> are absent, not errors."""
        assert parse_fmtp_line(line) is None

    @pytest.mark.parametrize(
        "line",
        [
            "a=fmtp:111 minptime=10;useinbandfec=1",
            "a=fmtp:97 level-asymmetry-allowed=1;packetization-mode=1;profile-level-id=42e01f",
            "a=fmtp:96 x-google-min-bitrate=300",
        ],
    )
    def test_round_trip(self, line: str) -> None:
        """Writing a parsed line gives the same line back."""
        assert write_fmtp_line(parse_fmtp_line(line)) == line

    def test_write_empty_means_delete(self) -> None:
        """Empty or missing records have no line."""
        assert write_fmtp_line(FmtpRecord(payload_type=PayloadType("111"), params={})) is None
        assert write_fmtp_line(None) is None

    def test_find_fmtp_line(self, browser_lines: list[str]) -> None:
        """fmtp lookup goes through the codec's payload type."""
        index = find_fmtp_line(browser_lines, "H264/90000")
        assert browser_lines[index].startswith("a=fmtp:97 ")
        assert find_fmtp_line(browser_lines, "VP8/90000") is None
        assert find_fmtp_line(browser_lines, "AV1/90000") is None


class TestCodecParams:
    """Test fmtp parameter upsert/removal on a whole body."""

    def test_insert_new_fmtp_after_rtpmap(self) -> None:
        """Without an fmtp line a new one follows the rtpmap line."""
        sdp = crlf("m=audio 9 RTP/SAVPF 111", "a=rtpmap:111 opus/48000", "a=sendrecv")
        result = set_codec_param(sdp, "opus/48000", "stereo", "1")
        assert result == crlf(
            "m=audio 9 RTP/SAVPF 111",
            "a=rtpmap:111 opus/48000",
            "a=fmtp:111 stereo=1",
            "a=sendrecv",
        )

    def test_update_existing_fmtp(self, browser_sdp: str) -> None:
        """Existing lines are updated in place."""
        result = set_codec_param(browser_sdp, "opus/48000", "useinbandfec", "0")
        assert "a=fmtp:111 minptime=10;useinbandfec=0\r\n" in result
        assert len(result.split("\r\n")) == len(browser_sdp.split("\r\n"))

    def test_add_param_to_existing_fmtp(self, browser_sdp: str) -> None:
        """New keys are appended."""
        result = set_codec_param(browser_sdp, "opus/48000", "stereo", "1")
        assert "a=fmtp:111 minptime=10;useinbandfec=1;stereo=1\r\n" in result

    def test_set_on_missing_codec(self, browser_sdp: str) -> None:
        """Unknown codecs leave the body unchanged."""
        assert set_codec_param(browser_sdp, "AV1/90000", "x", "1") == browser_sdp

    def test_remove_param(self, browser_sdp: str) -> None:
        """Removing one of several params rewrites the line."""
        result = remove_codec_param(browser_sdp, "opus/48000", "useinbandfec")
        assert "a=fmtp:111 minptime=10\r\n" in result

    def test_remove_last_param_deletes_line(self) -> None:
        """An fmtp line with no params left is dropped."""
        sdp = crlf("a=rtpmap:111 opus/48000/2", "a=fmtp:111 stereo=1", "a=sendrecv")
        result = remove_codec_param(sdp, "opus/48000", "stereo")
        assert result == crlf("a=rtpmap:111 opus/48000/2", "a=sendrecv")

    def test_remove_absent_param(self, browser_sdp: str) -> None:
        """Removing a key that is not there is a no-op."""
        assert remove_codec_param(browser_sdp, "opus/48000", "usedtx") == browser_sdp

    def test_remove_without_fmtp(self, browser_sdp: str) -> None:
        """Codecs without an fmtp line are left alone."""
        assert remove_codec_param(browser_sdp, "VP8/90000", "x-google-min-bitrate") == browser_sdp
