"""Tests for SDP line search and media section lookup."""

from rtcsig.sdp.lines import ScanDirection, find_line, find_line_in_range, join_lines, split_lines
from rtcsig.sdp.media import MediaRange, bandwidth_line, connection_line, media_range


class TestLineIndex:
    """Test prefix/substring line search."""

    def test_find_first_match(self, browser_lines: list[str]) -> None:
        """First line with prefix and case-insensitive substring."""
        index = find_line(browser_lines, "a=rtpmap", "OPUS")
        assert browser_lines[index] == "a=rtpmap:111 opus/48000/2"

    def test_find_prefix_only(self, browser_lines: list[str]) -> None:
        """Without substr the first prefixed line wins."""
        assert find_line(browser_lines, "m=") == browser_lines.index("m=audio 9 UDP/TLS/RTP/SAVPF 111 103 9 0 8")

    def test_no_match_returns_none(self, browser_lines: list[str]) -> None:
        """Missing lines are reported as None."""
        assert find_line(browser_lines, "a=rtpmap", "AV1") is None
        assert find_line(browser_lines, "b=AS") is None

    def test_prefix_is_literal(self) -> None:
        """Prefix is not treated as a pattern."""
        lines = ["a=rtpmap:1 x/1"]
        assert find_line(lines, "a=rtp.*") is None
        assert find_line(lines, "a=rtp") == 0

    def test_ascending_range_bounds(self) -> None:
        """Ascending scans stop before end; -1 means end of body."""
        lines = ["a=x", "b=1", "a=y"]
        assert find_line_in_range(lines, 0, 2, "a=", "y") is None
        assert find_line_in_range(lines, 0, -1, "a=", "y") == 2
        assert find_line_in_range(lines, 1, -1, "a=") == 2

    def test_descending_scan(self) -> None:
        """Descending scans walk back to the first line; -1 starts at the last."""
        lines = ["a=x", "b=1", "a=y"]
        assert find_line_in_range(lines, -1, 0, "a=", direction=ScanDirection.DESC) == 2
        assert find_line_in_range(lines, 1, 0, "a=", direction="desc") == 0
        assert find_line_in_range(lines, 1, 0, "a=", "y", direction="desc") is None

    def test_split_only_on_crlf(self) -> None:
        """Bodies without CRLF are a single line."""
        assert split_lines("v=0\no=- 1 1 IN IP4 0.0.0.0") == ["v=0\no=- 1 1 IN IP4 0.0.0.0"]
        assert join_lines(split_lines("v=0\r\ns=-\r\n")) == "v=0\r\ns=-\r\n"


class TestMediaSection:
    """Test media range and connection line lookup."""

    def test_audio_range(self, browser_lines: list[str]) -> None:
        """Audio section ends at the video m= line."""
        media = media_range(browser_lines, "audio")
        assert browser_lines[media.media_line_index].startswith("m=audio")
        assert browser_lines[media.next_media_line_index].startswith("m=video")

    def test_last_section_runs_to_end(self, browser_lines: list[str]) -> None:
        """The last section ends at the body length."""
        media = media_range(browser_lines, "video")
        assert media.next_media_line_index == len(browser_lines)

    def test_missing_section(self, browser_lines: list[str]) -> None:
        """No m= line for the media type gives None."""
        assert media_range(browser_lines, "application") is None

    def test_connection_line_inside_section(self, browser_lines: list[str]) -> None:
        """The c= line is searched after the m= line of the section."""
        video = media_range(browser_lines, "video")
        index = connection_line(browser_lines, video)
        assert index == video.media_line_index + 1
        assert index in video

    def test_no_session_level_connection(self) -> None:
        """A session-level c= line before the m= line does not count."""
        lines = ["v=0", "c=IN IP4 1.2.3.4", "m=audio 9 RTP/AVP 0", "a=rtpmap:0 PCMU/8000"]
        assert connection_line(lines, media_range(lines, "audio")) is None

    def test_bandwidth_line(self) -> None:
        """b=AS lookup is bounded by the range."""
        lines = ["m=audio 9 RTP/AVP 0", "c=IN IP4 0.0.0.0", "m=video 9 RTP/AVP 96", "b=AS:500"]
        assert bandwidth_line(lines, 2, 2) is None
        assert bandwidth_line(lines, 2, 4) == 3

    def test_range_membership(self) -> None:
        """MediaRange is half-open."""
        media = MediaRange(2, 5)
        assert 2 in media
        assert 4 in media
        assert 5 not in media
