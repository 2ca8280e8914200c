from datetime import datetime

import pytest

from remindbot.core.parser import CommandParseError, parse_command


class TestParseCommand:
    def test_parses_date_time_and_body(self):
        parsed = parse_command("31.12.2025 23:45 Pick up the cake")
        assert parsed.due_at == datetime(2025, 12, 31, 23, 45)
        assert parsed.body == "Pick up the cake"

    def test_due_at_has_no_sub_minute_component(self):
        parsed = parse_command("01.03.2024 07:05 wake up")
        assert parsed.due_at.second == 0
        assert parsed.due_at.microsecond == 0

    @pytest.mark.parametrize(
        "text, body",
        [
            ("01.01.2026 10:00 two  spaces   inside", "two  spaces   inside"),
            ("01.01.2026 10:00  leading space", " leading space"),
            ("01.01.2026 10:00 first line\nsecond line", "first line\nsecond line"),
            ("01.01.2026 10:00 Пора за стол", "Пора за стол"),
            ("01.01.2026 10:00 !", "!"),
        ],
    )
    def test_body_is_kept_verbatim(self, text, body):
        assert parse_command(text).body == body

    def test_accepts_tab_as_separator(self):
        assert parse_command("29.02.2024 12:00\tleap day").due_at == datetime(2024, 2, 29, 12, 0)

    @pytest.mark.parametrize(
        "text",
        [
            "not a date at all",
            "31.02.2024 10:00 test",       # 不存在的日期
            "29.02.2023 10:00 test",       # 非闰年
            "01.01.2026 24:00 test",       # 非法小时
            "01.01.2026 10:60 test",       # 非法分钟
            "01.13.2026 10:00 test",       # 非法月份
            "01.01.2026 10:00",            # 没有正文
            "01.01.2026 10:00 ",           # 正文为空
            "01.01.2026 10:00    ",        # 正文只有空白
            "01.01.2026 10:00test",        # 缺少分隔符
            "1.1.2026 10:00 test",         # 日期不是定长
            "01.01.2026 9:00 test",        # 时间不是定长
            "01/01/2026 10:00 test",       # 错误的分隔符
            "01.01.2026T10:00 test",
            "",
        ],
    )
    def test_rejects_malformed_input(self, text):
        with pytest.raises(CommandParseError):
            parse_command(text)

    def test_parse_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_command("31.02.2020 10:00 test")

    def test_none_input_is_rejected(self):
        with pytest.raises(CommandParseError):
            parse_command(None)
