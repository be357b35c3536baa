import asyncio

from backend.render import MathDisplay, MathMLCapability, MathRenderer


class FakeKatex:
    def __init__(self):
        self.calls = []

    def render(self, formula, surface, options):
        self.calls.append((formula, options))
        surface.html = f'<span class="katex">{formula}</span>'


class BrokenKatex:
    def render(self, formula, surface, options):
        raise ValueError("KaTeX parse error")


def _quick_renderer(**overrides) -> MathRenderer:
    options = {"initial_delay": 0.001, "max_delay": 0.004, "max_attempts": 3}
    options.update(overrides)
    return MathRenderer(**options)


def test_renders_with_available_capability():
    katex = FakeKatex()
    renderer = _quick_renderer()
    renderer.provide(katex)

    rendered = asyncio.run(renderer.render("x^2", block=True))

    assert rendered.html == '<span class="katex">x^2</span>'
    assert not rendered.fallback
    assert katex.calls == [("x^2", {"throwOnError": False, "displayMode": True})]


def test_waits_for_late_capability():
    katex = FakeKatex()

    async def run():
        renderer = _quick_renderer(initial_delay=0.01, max_delay=0.05, max_attempts=10)
        asyncio.get_running_loop().call_later(0.02, renderer.provide, katex)
        return await renderer.render("a+b")

    rendered = asyncio.run(run())
    assert rendered.html is not None
    assert not rendered.fallback


def test_falls_back_when_capability_never_arrives():
    renderer = _quick_renderer()
    rendered = asyncio.run(renderer.render(r"\frac{1}{2}"))
    assert rendered.fallback
    assert rendered.text == r"\frac{1}{2}"
    assert rendered.html is None


def test_falls_back_when_rendering_raises():
    renderer = _quick_renderer()
    renderer.provide(BrokenKatex())
    rendered = asyncio.run(renderer.render(r"\bad{"))
    assert rendered.fallback
    assert rendered.text == r"\bad{"


def test_first_capability_wins():
    first, second = FakeKatex(), FakeKatex()
    renderer = _quick_renderer()
    renderer.provide(first)
    renderer.provide(second)
    asyncio.run(renderer.render("y"))
    assert len(first.calls) == 1
    assert second.calls == []


def test_display_rerenders_only_on_change():
    katex = FakeKatex()
    renderer = _quick_renderer()
    renderer.provide(katex)

    async def run():
        display = MathDisplay(renderer, "x")
        await display.update()
        await display.update("x", False)
        assert len(katex.calls) == 1
        await display.update("y")
        assert len(katex.calls) == 2
        rendered = await display.update(block=True)
        assert len(katex.calls) == 3
        return rendered

    rendered = asyncio.run(run())
    assert rendered.block
    assert rendered.latex == "y"


def test_mathml_capability_honours_display_mode():
    renderer = _quick_renderer()
    renderer.provide(MathMLCapability())

    inline = asyncio.run(renderer.render(r"\frac{1}{2}"))
    block = asyncio.run(renderer.render(r"\frac{1}{2}", block=True))

    assert not inline.fallback
    assert "<mfrac>" in inline.html
    assert 'display="inline"' in inline.html
    assert 'display="block"' in block.html
