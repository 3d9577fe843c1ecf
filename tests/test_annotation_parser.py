from routedoc.annotations.parser import parse_annotation, split_tags
from routedoc.domain.models import OperationAnnotation


USER_REF = {"$ref": "#/components/schemas/User"}


def test_parse_annotation_full_tag_set():
    doc = """
Fetch a user.

@summary Get user
@description Returns the user
  with all of its fields.
@operationId fetchUser
@paramPath id - The user id - @type(integer)
@paramQuery include - Relations to embed @required
@requestBody <User>
@responseBody 200 - <User> - The user @summary(Found)
@response 404 - User not found
@unknownTag whatever
"""
    a = parse_annotation(doc)

    assert a.summary == "Get user"
    assert a.description == "Returns the user\nwith all of its fields."
    assert a.operation_id == "fetchUser"

    assert [(p.name, p.location, p.required) for p in a.parameters] == [
        ("id", "path", True),
        ("include", "query", True),
    ]
    assert a.parameters[0].schema == {"type": "integer"}
    assert a.parameters[0].description == "The user id"
    assert a.parameters[1].description == "Relations to embed"

    assert a.request_body == {"content": {"application/json": {"schema": USER_REF}}}

    ok = a.responses["200"]
    assert ok.description == "The user"
    assert ok.content == {"application/json": {"schema": USER_REF}}
    assert ok.summary == "Found"

    missing = a.responses["404"]
    assert missing.description == "User not found"
    assert missing.content is None


def test_tags_are_order_independent():
    a = parse_annotation("@response 204\n@summary Delete it")
    b = parse_annotation("@summary Delete it\n@response 204")
    assert a == b
    assert a.responses["204"].description == "No Content"


def test_query_params_are_optional_unless_marked():
    a = parse_annotation("@paramQuery page - Page number - @type(int) @example(2)")
    (p,) = a.parameters
    assert p.required is False
    assert p.schema == {"type": "integer", "example": 2}


def test_header_and_cookie_params():
    a = parse_annotation("@paramHeader X-Trace-Id\n@paramCookie session @required")
    assert [(p.name, p.location, p.required) for p in a.parameters] == [
        ("X-Trace-Id", "header", False),
        ("session", "cookie", True),
    ]


def test_request_body_per_content_type():
    a = parse_annotation(
        '@requestBody application/json <User[]>\n@requestBody multipart/form-data {"file": "binary"}'
    )
    content = a.request_body["content"]
    assert content["application/json"] == {"schema": {"type": "array", "items": USER_REF}}
    assert content["multipart/form-data"] == {
        "schema": {"type": "object"},
        "example": {"file": "binary"},
    }


def test_free_text_becomes_description_without_description_tag():
    a = parse_annotation("Just a description.\n\nSecond paragraph.")
    assert a.description == "Just a description.\n\nSecond paragraph."
    assert a.summary == ""


def test_blank_line_terminates_a_tag():
    a = parse_annotation("@description First line\n\nNot part of it")
    assert a.description == "First line"


def test_malformed_status_yields_empty_annotation():
    assert parse_annotation("@summary Fine\n@responseBody 20x - <User>") == OperationAnnotation()


def test_malformed_json_yields_empty_annotation():
    assert parse_annotation("@requestBody {not json}").is_empty()


def test_unknown_param_type_yields_empty_annotation():
    assert parse_annotation("@paramQuery q @type(weird)").is_empty()


def test_empty_docstring():
    assert parse_annotation("").is_empty()


def test_split_tags_keeps_preamble_and_payloads():
    preamble, tags = split_tags("Intro\n@summary One\n  continued\n@foo")
    assert preamble == "Intro"
    assert tags == [("summary", "One continued"), ("foo", "")]


def test_response_body_json_may_contain_separator():
    a = parse_annotation('@responseBody 200 - {"range": "1 - 10"} - A range')
    assert a.responses["200"].description == "A range"
    assert a.responses["200"].content["application/json"] == {
        "schema": {"type": "object"},
        "example": {"range": "1 - 10"},
    }


def test_response_body_json_without_description_uses_reason_phrase():
    a = parse_annotation('@responseBody 200 - [{"range": "1 - 10"}]')
    assert a.responses["200"].description == "OK"
    assert a.responses["200"].content["application/json"]["example"] == [{"range": "1 - 10"}]


def test_response_body_model_ref_with_description():
    a = parse_annotation("@responseBody 201 - <User> - Created - and stored")
    assert a.responses["201"].description == "Created - and stored"
    assert a.responses["201"].content["application/json"] == {"schema": USER_REF}


def test_response_body_truncated_json_yields_empty_annotation():
    assert parse_annotation('@responseBody 200 - {"range": "1 - 10"').is_empty()
