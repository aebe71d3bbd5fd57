from wellchat.prompts import DEEP_PROMPT, EARLY_PROMPT, MID_PROMPT, select_system_prompt


def convo(n_user):
    msgs = []
    for i in range(n_user):
        msgs.append({"role": "user", "content": f"u{i}"})
        msgs.append({"role": "assistant", "content": f"a{i}"})
    return msgs


def test_tier_boundaries():
    assert select_system_prompt(convo(1)) == EARLY_PROMPT
    assert select_system_prompt(convo(3)) == EARLY_PROMPT
    assert select_system_prompt(convo(4)) == MID_PROMPT
    assert select_system_prompt(convo(8)) == MID_PROMPT
    assert select_system_prompt(convo(9)) == DEEP_PROMPT


def test_only_user_turns_count():
    msgs = [{"role": "assistant", "content": "hi"}] * 20 + [{"role": "user", "content": "hello"}]
    assert select_system_prompt(msgs) == EARLY_PROMPT


def test_custom_tiers():
    tiers = [(1, "short"), (None, "long")]
    assert select_system_prompt(convo(1), tiers) == "short"
    assert select_system_prompt(convo(2), tiers) == "long"


def test_prompts_shift_away_from_questions():
    assert "Ask only 1-2 targeted questions" in EARLY_PROMPT
    assert "questions only when essential" in MID_PROMPT
    assert "rarely asking questions" in DEEP_PROMPT
