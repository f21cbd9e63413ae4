import jinja2

root_loader = jinja2.PrefixLoader({}, delimiter=".")

jinja_env = jinja2.Environment(
    undefined=jinja2.StrictUndefined,
    loader=root_loader,
    keep_trailing_newline=True,
    trim_blocks=True,
    lstrip_blocks=True,
)


def register_template_loader(context, loader):
    """Register a source for templates.

    A template named ``'some_context.name.j2'`` is looked up with the loader
    registered for "some_context". This function allows registering a loader
    for your downstream package or application, e.g. to emit build files
    for another build system.

    Parameters
    ----------
    context : str
        The context of the loader.
    loader: jinja2.BaseLoader | callable | dict
        The loader to use for this context. If a function is given, it must accept one
        positional argument (the name to load).
    """
    if not (isinstance(context, str) and "." not in context):
        raise TypeError("Template load context must be a string without dots.")
    if context in root_loader.mapping:
        raise RuntimeError(f"A loader is already registered for '{context}'.")
    if isinstance(loader, jinja2.BaseLoader):
        root_loader.mapping[context] = loader
    elif isinstance(loader, dict):
        root_loader.mapping[context] = jinja2.DictLoader(loader)
    elif callable(loader):
        root_loader.mapping[context] = jinja2.FunctionLoader(loader)
    else:
        raise TypeError(
            f"The given template loader must be a jinja2.BaseLoader, function, or dict. Not {loader!r}"
        )


def register_template_filter(name, func):
    """Make ``func`` available as a filter in all templates."""
    if not callable(func):
        raise TypeError(f"Template filter must be callable, not {func!r}")
    jinja_env.filters[name] = func


register_template_loader(
    "shadervariants", jinja2.PackageLoader("shadervariants", "templates")
)


def render_template(name, **kwargs):
    t = jinja_env.get_template(name)
    try:
        return t.render(**kwargs)
    except jinja2.UndefinedError as err:
        raise ValueError(f"Cannot render {name}: {err.args[0]}") from None
