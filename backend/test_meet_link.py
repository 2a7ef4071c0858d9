from hubot_commands.meet_link import MEET_CODE_MAX_LENGTH, generate_meet_link, meet_code


def test_link_joins_mentions_with_hyphens():
    result = generate_meet_link("@a @b")
    assert "https://g.co/meet/a-b" in result
    assert result.endswith("@a @b")


def test_link_keeps_original_participants():
    assert generate_meet_link("@alice  @bob") == "Your Meet is ready: https://g.co/meet/alice--bob @alice  @bob"


def test_code_is_truncated():
    participants = " ".join(f"@participant{i}" for i in range(20))
    code = meet_code(participants)
    assert len(code) == MEET_CODE_MAX_LENGTH
    assert "@" not in code
    assert " " not in code


def test_short_code_is_not_padded():
    assert meet_code("@x") == "x"


def test_empty_participants():
    assert generate_meet_link("") == "Your Meet is ready: https://g.co/meet/ "
