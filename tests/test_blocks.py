"""Tests for content block validation and the callable discriminator."""

from __future__ import annotations

import pytest

from session_normalizer.schemas.blocks import (
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
    UnknownBlock,
    get_block_type,
    parse_content_blocks,
    parse_tool_arguments,
)


@pytest.mark.parametrize(
    ('raw_type', 'expected'),
    [
        ('text', 'text'),
        ('input_text', 'text'),
        ('output_text', 'text'),
        ('thinking', 'thinking'),
        ('reasoning', 'thinking'),
        ('tool_use', 'tool_use'),
        ('function_call', 'tool_use'),
        ('tool_result', 'tool_result'),
        ('function_call_output', 'tool_result'),
        ('image', 'unknown'),
    ],
)
def test_block_type_aliases(raw_type: str, expected: str) -> None:
    assert get_block_type({'type': raw_type}) == expected


def test_discriminator_handles_model_instances() -> None:
    assert get_block_type(ToolUseBlock(id='t1')) == 'tool_use'
    assert get_block_type({'text': 'no tag'}) == 'unknown'


def test_provider_text_tags_become_text_blocks() -> None:
    blocks = parse_content_blocks([{'type': 'output_text', 'text': 'done'}, 'bare string'])

    assert blocks == [TextBlock(text='done'), TextBlock(text='bare string')]


def test_thinking_falls_back_to_text_field() -> None:
    (block,) = parse_content_blocks([{'type': 'reasoning', 'text': 'considering'}])

    assert block == ThinkingBlock(thinking='considering')


def test_tool_use_identifier_and_arguments() -> None:
    (block,) = parse_content_blocks(
        [{'type': 'function_call', 'call_id': 'call_9', 'name': 'shell', 'arguments': '{"cmd": "ls"}'}]
    )

    assert isinstance(block, ToolUseBlock)
    assert block.id == 'call_9'
    assert block.name == 'shell'
    assert block.input == {'cmd': 'ls'}


def test_tool_use_defaults() -> None:
    (block,) = parse_content_blocks([{'type': 'tool_use', 'input': 'not json'}])

    assert block == ToolUseBlock(id='', name='unknown', input={})


@pytest.mark.parametrize(
    'raw',
    [
        {'type': 'tool_result', 'tool_use_id': 't1', 'content': ''},
        {'type': 'tool_result', 'tool_use_id': 't1', 'content': []},
        {'type': 'tool_result', 'tool_use_id': 't1', 'content': {}},
        {'type': 'tool_result', 'tool_use_id': 't1'},
        {'type': 'tool_result', 'tool_use_id': '', 'content': 'ok'},
        {'type': 'tool_result', 'content': 'ok'},
    ],
    ids=['empty-str', 'empty-list', 'empty-dict', 'missing-content', 'empty-id', 'missing-id'],
)
def test_malformed_tool_result_is_dropped(raw: dict[str, object]) -> None:
    assert parse_content_blocks([raw]) == []


def test_malformed_block_does_not_affect_siblings() -> None:
    blocks = parse_content_blocks(
        [
            {'type': 'text', 'text': 'before'},
            {'type': 'tool_result', 'tool_use_id': 't1', 'content': ''},
            42,
            {'type': 'tool_result', 'call_id': 't2', 'output': 'ok', 'is_error': False},
        ]
    )

    assert blocks == [
        TextBlock(text='before'),
        ToolResultBlock(tool_use_id='t2', content='ok', is_error=False),
    ]


@pytest.mark.parametrize('content', [42, 0, 2.5, True, False], ids=['int', 'zero', 'float', 'true', 'false'])
def test_scalar_tool_result_content_is_kept(content: object) -> None:
    (block,) = parse_content_blocks([{'type': 'tool_result', 'tool_use_id': 't1', 'content': content}])

    assert isinstance(block, ToolResultBlock)
    assert block.content == content
    assert type(block.content) is type(content)


def test_unknown_block_keeps_its_fields() -> None:
    (block,) = parse_content_blocks([{'type': 'image', 'source': {'media_type': 'image/png'}}])

    assert isinstance(block, UnknownBlock)
    assert block.type == 'image'
    assert block.model_dump()['source'] == {'media_type': 'image/png'}


def test_block_models_pass_through() -> None:
    block = ToolUseBlock(id='t1', name='Read')

    assert parse_content_blocks([block])[0] is block


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        ({'a': 1}, {'a': 1}),
        ('{"a": 1}', {'a': 1}),
        ('[1, 2]', {}),
        ('{broken', {}),
        ('', {}),
        (None, {}),
        (7, {}),
    ],
)
def test_parse_tool_arguments(value: object, expected: dict[str, object]) -> None:
    assert parse_tool_arguments(value) == expected
