"""Shared source snippets for the search, context and CLI tests."""

from __future__ import annotations

from textwrap import dedent

VALID_IF_ELSE = dedent(
    """\
    def foo
      if bar

        baz
      else

        qux
      end
    end
    """
)

NESTED_MISSING_END = dedent(
    """\
    def process(items)
      items.each do |item|
        if item.ready?
          item.run
        log(item)
      end
    end
    """
)

EXTRA_END = dedent(
    """\
    def render
      if header?
        draw_header
      end
      end
      if footer?
        draw_footer
      end
    end
    """
)

TWO_ERRORS = dedent(
    """\
    def load
      if cached?
        read_cache
    end

    def save
      items.each do
        write(item)
    end
    """
)

AMBIGUOUS_END = dedent(
    """\
    def call          # 1
        puts "lol"    # 2
      end # one       # 3
    end # two         # 4
    """
)

SAME_INDENT_OPENERS = dedent(
    """\
    def first
      setup
    def second
      run
     end
    """
)

RAGGED_CLOSER = dedent(
    """\
    Foo.call
      def foo
        print "lol"
        print "lol"
       end # one
    end # two
    """
)

CLASS_DOG = dedent(
    """\
    class Dog
      def bark
        puts "woof"
    end
    """
)

FALLING_INDENT = dedent(
    """\
    class Blerg
    end

    class OH

      def hello
        it "foo" do
      end
    end

    class Zerg
    end
    """
)

SAME_INDENT = dedent(
    """\
    class Blerg
    end
    class OH

      def nope
      end

      def lol
      end

        puts "here"
      end # here

      def haha
      end

      def nope
      end
    end

    class Zerg
    end
    """
)

MISSING_DO = dedent(
    """\
    def call
      trydo

        @options = CommandLineParser.new.parse

        options.requires.each { |r| require!(r) }
        load_global_config_if_exists
        options.loads.each { |file| load(file) }

        @user_source_code = ARGV.join(' ')
        @user_source_code = 'self' if @user_source_code == ''

        @callable = create_callable

        init_rexe_context
        init_parser_and_formatters

        # This is where the user's source code will be executed; the action will in turn call `execute`.
        lookup_action(options.input_mode).call unless options.noop

        output_log_entry
      end # one
    end # two
    """
)

BRACES_MISSING_CLOSE = dedent(
    """\
    function load(items) {
      items.forEach((item) => {
        if (item.ready) {
          item.run();
      });
    }
    """
)

DESCRIBE_MISSING_DO = dedent(
    """\
    describe "things" do
      it "blerg" do
      end

      it "flerg"
      end

      it "zlerg" do
      end
    end
    """
)

FLAT_SIBLINGS = dedent(
    """\
    def sit
    end

    def bark

    def eat
    end
    """
)
