"""Tests for PHP hook and block-registration extraction."""

from __future__ import annotations

import textwrap

from hookindex.parsers import PhpParser

QUERY_SOURCE = textwrap.dedent(
    """\
    <?php
    class WP_Query {
        public function get_posts() {
            $q = $this->query_vars;
            /**
             * Fires after the query variable object is created.
             *
             * @param WP_Query $query The WP_Query instance.
             */
            do_action_ref_array( 'pre_get_posts', array( &$this ) );
        }
    }
    """
)


def test_ref_array_hook_inside_method() -> None:
    result = PhpParser().parse(QUERY_SOURCE, "wp-includes/class-wp-query.php")

    assert len(result.hooks) == 1
    hook = result.hooks[0]
    assert hook.name == "pre_get_posts"
    assert hook.type == "action_ref_array"
    assert hook.line_number == 10
    assert hook.function_context == "get_posts"
    assert hook.class_name == "WP_Query"
    assert hook.params == "array( &$this )"
    assert hook.param_count == 1
    assert hook.is_dynamic is False
    assert hook.docblock.startswith("/**")
    assert "Fires after the query variable object is created." in hook.docblock
    assert "do_action_ref_array" in hook.hook_line
    assert hook.inferred_description == (
        'Action hook (ref array) "pre_get_posts" in get_posts() of class WP_Query with 1 parameter'
    )
    assert len(hook.content_hash) == 16


def test_dynamic_names_and_parameters() -> None:
    source = textwrap.dedent(
        """\
        <?php
        function wp_insert_post( $postarr ) {
            do_action( "foo_" . $bar );
            do_action( "save_post_{$post->post_type}", $post_id, $post, $update );
            return apply_filters( 'wp_insert_post_data', $data, $postarr );
        }
        """
    )
    hooks = PhpParser().parse(source, "post.php").hooks

    assert [(hook.name, hook.type, hook.is_dynamic) for hook in hooks] == [
        ("foo_{dynamic}", "action", True),
        ("save_post_{dynamic}", "action", True),
        ("wp_insert_post_data", "filter", False),
    ]
    assert hooks[1].param_count == 3
    assert hooks[2].params == "$data, $postarr"
    assert all(hook.function_context == "wp_insert_post" for hook in hooks)
    assert hooks[0].inferred_description == (
        'Action hook (dynamic name) "foo_{dynamic}" in wp_insert_post()'
    )


def test_comments_definitions_and_broken_calls_are_skipped() -> None:
    source = textwrap.dedent(
        """\
        <?php
        // do_action( 'commented_out' );
        /**
         * apply_filters( 'in_docblock', $value );
         */
        function do_action( $hook_name, ...$arg ) {
        }
        do_action( 'real_hook' );
        do_action( 'unterminated );
        """
    )
    hooks = PhpParser().parse(source, "plugin.php").hooks

    assert [hook.name for hook in hooks] == ["real_hook"]
    assert hooks[0].line_number == 8
    assert hooks[0].docblock is None


def test_unchanged_source_yields_identical_hashes() -> None:
    first = PhpParser().parse(QUERY_SOURCE, "a.php").hooks[0]
    second = PhpParser().parse(QUERY_SOURCE, "a.php").hooks[0]
    changed = PhpParser().parse(
        QUERY_SOURCE.replace("array( &$this )", "array( &$this, $q )"), "a.php"
    ).hooks[0]

    assert first.content_hash == second.content_hash
    assert changed.content_hash != first.content_hash


def test_block_registrations() -> None:
    source = textwrap.dedent(
        """\
        <?php
        register_block_type( 'core/archives', array(
            'title'           => __( 'Archives' ),
            'category'        => 'widgets',
            'render_callback' => 'render_block_core_archives',
        ) );
        register_block_type( $metadata_file );
        register_block_style( 'core/quote', array( 'name' => 'fancy' ) );
        """
    )
    blocks = PhpParser().parse(source, "blocks.php").blocks

    assert [(block.block_name, block.registration_type) for block in blocks] == [
        ("core/archives", "register_block_type"),
        ("core/quote", "register_block_style"),
    ]
    archives = blocks[0]
    assert archives.line_number == 2
    assert archives.block_title == "Archives"
    assert archives.block_category == "widgets"
    assert "register_block_type" in archives.code_context
    assert blocks[1].block_title is None


def test_supports_only_php_files() -> None:
    parser = PhpParser()
    assert parser.supports("wp-includes/plugin.php")
    assert not parser.supports("src/index.js")
