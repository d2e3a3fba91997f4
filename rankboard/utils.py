import random
import time
import markdown
from markdown.postprocessors import Postprocessor
from markdown.extensions import Extension
from markdown.extensions.codehilite import CodeHiliteExtension
from markdown.extensions.tables import TableExtension
from markdown.extensions.fenced_code import FencedCodeExtension
from markdown.extensions.sane_lists import SaneListExtension
import datetime
import pytz
import traceback
import secrets
import psutil
import re
import jinja2
from contextlib import contextmanager
from typing import Union, Callable, Dict, Any, Iterator, Literal, Optional

LogLevel = Literal['debug', 'info', 'warning', 'error', 'critical', 'success']

from . import secret

def gen_random_str(length: int = 32, *, crypto: bool = False) -> str:
    choice: Callable[[str], str] = secrets.choice if crypto else random.choice  # type: ignore
    alphabet = 'qwertyuiopasdfghjkzxcvbnmQWERTYUPASDFGHJKLZXCVBNM23456789'

    return ''.join([choice(alphabet) for _ in range(length)])

class LinkTargetExtension(Extension):
    class LinkTargetProcessor(Postprocessor):
        EXT_LINK_RE = re.compile(r'<a href="(?!#)') # only external links

        def run(self, text: str) -> str:
            return self.EXT_LINK_RE.sub('<a target="_blank" rel="noopener noreferrer" href="', text)

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.postprocessors.register(self.LinkTargetProcessor(), 'link-target-processor', 100)

markdown_processor = markdown.Markdown(extensions=[
    FencedCodeExtension(),
    CodeHiliteExtension(guess_lang=False, use_pygments=True, noclasses=True),
    TableExtension(),
    SaneListExtension(),
    LinkTargetExtension(),
], output_format='html')

def render_template(template_str: str, args: Dict[str, Any]) -> str:
    # jinja2 to md
    env = jinja2.Environment(
        loader=jinja2.DictLoader({'index.md': template_str}),
        autoescape=True,
        auto_reload=False,
    )
    md_str = env.get_template('index.md').render(**args)

    # md to str
    markdown_processor.reset()
    return markdown_processor.convert(md_str)

def check_template(template_str: str) -> Optional[str]:
    try:
        jinja2.Environment(autoescape=True).parse(template_str)
    except jinja2.TemplateSyntaxError as e:
        return f'template error at line {e.lineno}: {e.message}'
    return None

def format_timestamp(timestamp_s: Union[float, int]) -> str:
    date = datetime.datetime.fromtimestamp(timestamp_s, pytz.timezone(secret.DISPLAY_TIMEZONE))
    t = date.strftime('%Y-%m-%d %H:%M:%S')
    if isinstance(timestamp_s, float):
        t += f'.{int((timestamp_s%1)*1000):03d}'
    return t

def parse_iso_timestamp(s: str) -> Optional[int]:
    try:
        date = datetime.datetime.fromisoformat(s.replace('Z', '+00:00'))
    except ValueError:
        return None

    if date.tzinfo is None:
        date = pytz.timezone(secret.DISPLAY_TIMEZONE).localize(date)
    return int(date.timestamp())

def format_size(size: int) -> str:
    if size<1024:
        return f'{size}B'
    elif size<1024**2:
        return f'{size/1024:.1f}K'
    elif size<1024**3:
        return f'{size/(1024**2):.1f}M'
    else:
        return f'{size/(1024**3):.1f}G'

def get_traceback(e: Exception) -> str:
    return repr(e) + '\n' + ''.join(traceback.format_exception(type(e), e, e.__traceback__))

@contextmanager
def log_slow(logger: Callable[[LogLevel, str, str], None], module: str, func: str, threshold: float = 0.3) -> Iterator[None]:
    t1 = time.monotonic()
    try:
        yield
    finally:
        t2 = time.monotonic()
        if t2-t1 > threshold:
            logger('warning', module, f'took {t2-t1:.2f}s to {func}')

def sys_status() -> Dict[str, Union[int, float]]:
    load_1, load_5, load_15 = psutil.getloadavg()
    vmem = psutil.virtual_memory()
    disk = psutil.disk_usage('/')
    G = 1024**3

    return {
        'process': len(psutil.pids()),

        'n_cpu': psutil.cpu_count(logical=False) or 0,
        'load_1': load_1,
        'load_5': load_5,
        'load_15': load_15,

        'ram_total': vmem.total/G,
        'ram_used': vmem.used/G,
        'ram_free': vmem.available/G,

        'disk_total': disk.total/G,
        'disk_used': disk.used/G,
        'disk_free': disk.free/G,
    }
