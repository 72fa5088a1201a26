"""Tests for JavaScript/TypeScript extraction."""

from __future__ import annotations

import textwrap

from hookindex.parsers import JavaScriptParser, build_parsers, select_parser

EDITOR_SOURCE = textwrap.dedent(
    """\
    import { addFilter, applyFilters } from '@wordpress/hooks';

    addFilter( 'blocks.registerBlockType', 'my-plugin/extend', extendSettings );

    export function getLabel( name ) {
        return applyFilters( `editor.label.${ name }`, name );
    }

    registerBlockType( 'my-plugin/notice', {
        title: __( 'Notice', 'my-plugin' ),
        category: 'text',
        attributes: {
            message: { type: 'string' },
        },
        supports: { html: false },
        edit: Edit,
    } );

    const { select } = wp.data.select( 'core/editor' );
    wp.data.dispatch( 'core' ); wp.data.dispatch( 'core' );
    // wp.blocks.getBlockTypes()
    """
)


def test_hooks_are_extracted_with_dialect_rules() -> None:
    hooks = JavaScriptParser().parse(EDITOR_SOURCE, "src/index.js").hooks

    assert [(hook.name, hook.type, hook.is_dynamic) for hook in hooks] == [
        ("blocks.registerBlockType", "js_filter", False),
        ("editor.label.{dynamic}", "js_filter", True),
    ]
    assert hooks[0].line_number == 3
    assert hooks[0].params == "'my-plugin/extend', extendSettings"
    assert hooks[0].param_count == 2
    assert hooks[1].line_number == 6
    assert hooks[1].function_context == "getLabel"
    assert hooks[1].inferred_description == (
        'JavaScript filter hook (dynamic name) "editor.label.{dynamic}" in getLabel() with 1 parameter'
    )


def test_block_registration_reads_settings_object() -> None:
    blocks = JavaScriptParser().parse(EDITOR_SOURCE, "src/index.js").blocks

    assert len(blocks) == 1
    block = blocks[0]
    assert block.block_name == "my-plugin/notice"
    assert block.registration_type == "registerBlockType"
    assert block.line_number == 9
    assert block.block_title == "Notice"
    assert block.block_category == "text"
    assert block.block_attributes.startswith("{")
    assert "message: { type: 'string' }" in block.block_attributes
    assert block.supports == "{ html: false }"


def test_api_usages_are_deduplicated_per_line_and_skip_comments() -> None:
    apis = JavaScriptParser().parse(EDITOR_SOURCE, "src/index.js").apis

    assert [(api.api_call, api.namespace, api.method, api.line_number) for api in apis] == [
        ("wp.data.select", "data", "select", 19),
        ("wp.data.dispatch", "data", "dispatch", 20),
    ]
    assert "wp.data.select" in apis[0].code_context


def test_object_properties_ignores_spreads_and_shorthand() -> None:
    parser = JavaScriptParser()
    properties = parser.object_properties("{ ...base, edit, title: 'T', 'category': \"c\" }")
    assert properties == {"title": "'T'", "category": '"c"'}
    assert parser.object_properties("settings") == {}


def test_dialect_selection_by_extension() -> None:
    parsers = build_parsers()
    assert isinstance(select_parser(parsers, "src/edit.tsx"), JavaScriptParser)
    assert select_parser(parsers, "wp-includes/plugin.php").extensions == (".php",)
    assert select_parser(parsers, "README.md") is None


def test_api_usages_inside_strings_and_block_comments_are_ignored() -> None:
    content = textwrap.dedent(
        """\
        const help = 'Call wp.data.select( store ) to read state';
        const doc = `
            wp.blocks.getBlockType()
        `;
        save( /* wp.editor.savePost() */ );
        const label = "wp.i18n.__"; wp.hooks.addAction( 'x', 'ns', cb );
        wp.data.select( 'core' );
        """
    )
    apis = JavaScriptParser().parse(content, "src/help.js").apis
    assert [(api.api_call, api.line_number) for api in apis] == [
        ("wp.hooks.addAction", 6),
        ("wp.data.select", 7),
    ]


def test_deeply_nested_template_literal_is_dropped_without_raising() -> None:
    content = "addAction( `" + "${`" * 700 + "`, 'ns', cb );\ndoAction( 'plugin.ready' );\n"
    result = JavaScriptParser().parse(content, "dist/app.min.js")
    assert [hook.name for hook in result.hooks] == ["plugin.ready"]
