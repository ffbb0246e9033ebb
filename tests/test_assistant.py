from types import SimpleNamespace

import pytest

from finance_tracker.core.config import settings
from finance_tracker.core.exceptions import AssistantUnavailableError
from finance_tracker.utils.assistant import FinanceAssistant

sample_records = {
    "income": [{"source": "Client A", "amount_received": 10000, "date": "2024-03-01"}],
    "employee": [
        {"description": f"Expense {i}", "amount_paid": 100, "date": "2024-03-0{i}"} for i in range(1, 6)
    ],
    "vendor": [{"vendor_name": "Staples", "amount_incl_gst": 1180, "invoice_date": "2024-03-04"}],
}


def fake_client(answer="Your net profit is ₹8320."):
    calls = []

    def create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=answer))])

    return SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create))), calls


def test_system_prompt_contains_summary_and_recent_entries():
    prompt = FinanceAssistant(client=object()).build_system_prompt(sample_records)
    assert "Total Income: ₹10000.0" in prompt
    assert "Total Expenses: ₹1680.0" in prompt
    assert "Net Profit: ₹8320.0" in prompt
    assert "Expense 5" in prompt and "Expense 3" in prompt
    assert "Expense 2" not in prompt
    assert "- Staples: ₹1180 on 2024-03-04" in prompt
    assert "Recent Salary Expenses:\nNone" in prompt


def test_ask_sends_history_and_message():
    client, calls = fake_client()
    assistant = FinanceAssistant(client=client, model="gpt-test")
    history = '[{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]'

    answer = assistant.ask("How are we doing?", sample_records, history=history)

    assert answer == "Your net profit is ₹8320."
    messages = calls[0]["messages"]
    assert [m["role"] for m in messages] == ["system", "user", "assistant", "user"]
    assert messages[-1]["content"] == "How are we doing?"
    assert calls[0]["model"] == "gpt-test"
    assert calls[0]["max_tokens"] == 512


def test_normalize_history():
    assert FinanceAssistant.normalize_history("not json") == []
    assert FinanceAssistant.normalize_history({"role": "user"}) == []
    assert FinanceAssistant.normalize_history([{"role": "user", "content": "x"}, "junk"]) == [
        {"role": "user", "content": "x"}
    ]


def test_empty_message_is_rejected():
    client, _ = fake_client()
    with pytest.raises(ValueError):
        FinanceAssistant(client=client).ask("   ", sample_records)


def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(settings, "OPENAI_API_KEY", None)
    with pytest.raises(AssistantUnavailableError):
        FinanceAssistant().ask("How are we doing?", sample_records)
