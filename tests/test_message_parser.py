from services.whatsapp.message_parser import extract_text


def test_plain_conversation_text():
    assert extract_text({"conversation": "  hi there "}) == "hi there"


def test_extended_text_used_when_conversation_missing():
    payload = {"extendedTextMessage": {"text": "reply with quote"}}
    assert extract_text(payload) == "reply with quote"


def test_body_takes_priority_over_caption():
    payload = {"conversation": "body", "imageMessage": {"caption": "caption"}}
    assert extract_text(payload) == "body"


def test_blank_body_falls_through_to_caption():
    payload = {"conversation": "   ", "imageMessage": {"caption": "look at this"}}
    assert extract_text(payload) == "look at this"


def test_video_caption():
    assert extract_text({"videoMessage": {"caption": "clip"}}) == "clip"


def test_ephemeral_wrapper_is_unwrapped():
    payload = {"ephemeralMessage": {"message": {"extendedTextMessage": {"text": "secret"}}}}
    assert extract_text(payload) == "secret"


def test_media_without_caption_yields_none():
    assert extract_text({"imageMessage": {"mimetype": "image/jpeg"}}) is None
    assert extract_text({}) is None
    assert extract_text(None) is None
