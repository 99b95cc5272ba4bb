#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
LearnArai.
A small bilingual blog that renders markdown posts on every request.
"""


import os
import signal
import sys
import threading

from argparse import ArgumentParser, RawDescriptionHelpFormatter


# Information and error messages:

def outln(line):
    """ Write 'line' to stdout, using the platform encoding and newline format. """
    print(line, flush = True)


def errln(line):
    """ Write 'line' to stderr, using the platform encoding and newline format. """
    print('learnarai: error:', line, file = sys.stderr, flush = True)


# Non-builtin imports:

try:
    from flask import Flask, abort, make_response, request, send_from_directory
    from jinja2 import TemplateError
    from werkzeug.exceptions import HTTPException
    from werkzeug.serving import WSGIRequestHandler, make_server
    from werkzeug.wsgi import ClosingIterator

    import markdown
    import markupsafe
    import yaml

except ImportError:
    errln('LearnArai requires the following modules:')
    errln('Flask 3.0+      - <https://pypi.org/project/Flask>')
    errln('Markdown 3.4+   - <https://pypi.org/project/Markdown>')
    errln('MarkupSafe 2.1+ - <https://pypi.org/project/MarkupSafe>')
    errln('PyYAML 6.0+     - <https://pypi.org/project/PyYAML>')
    sys.exit(1)

from .content import (
    Content, FileReader, InvalidSlug, PostNotFound,
    default_meta_renderer, humanize_slug, is_valid_slug, warnln,
)
from .pages import compose_contact, compose_home, compose_post, resolve_lang


# Default body renderer for posts: markdown:

def default_post_renderer(body):
    return markdown.markdown(body, extensions = ['fenced_code', 'codehilite', 'tables'])


# Request bookkeeping for graceful shutdown:

class RequestTracker:
    """
    WSGI middleware that counts the requests currently being served,
    so that shutdown can wait for them to finish.
    """
    def __init__(self, app):
        self.app = app
        self.active = 0
        self.condition = threading.Condition()

    def _started(self):
        with self.condition:
            self.active += 1

    def _finished(self):
        with self.condition:
            self.active -= 1
            self.condition.notify_all()

    def __call__(self, environ, start_response):
        self._started()
        try:
            iterable = self.app(environ, start_response)
        except BaseException:
            self._finished()
            raise
        return ClosingIterator(iterable, self._finished)

    def wait_idle(self, timeout):
        """ Wait up to 'timeout' seconds for no active requests. True when idle. """
        with self.condition:
            return self.condition.wait_for(lambda: self.active == 0, timeout)


# Actual blog application:

LANG_COOKIE = 'lang'
LANG_COOKIE_MAX_AGE = 365 * 24 * 60 * 60

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'X-XSS-Protection': '1; mode=block',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


class Blog:

    def __init__(self, config = None, reader = None):
        """
        Build the application from the default configuration, an optional
        'blog.conf' in the working directory and 'config', in that order.
        'reader' replaces the posts directory reader for single posts.
        """
        self.app = Flask(__name__, static_folder = None)
        self.app.config.update(self.default_configuration)
        self.app.config.from_pyfile(os.path.join(os.getcwd(), 'blog.conf'), silent = True)

        if config is not None:
            self.app.config.update(config)

        files = FileReader(
            root      = self.app.config['POST_ROOT'],
            extension = self.app.config['POST_EXTENSION'],
            encoding  = self.app.config['POST_ENCODING'])

        self.reader = reader if reader is not None else files
        self.content = Content(files, self.app.config['POST_META_RENDERER'])

        # loaded once, a missing or broken template is fatal:
        self.template = self.app.jinja_env.get_template('base.html')

        self._install_everything()

    @property
    def default_configuration(self):
        """ Sensible defaults for all our configuration options. """
        return {
            'POST_ROOT': 'posts',
            'POST_EXTENSION': '.md',
            'POST_ENCODING': 'utf-8-sig',
            'POST_META_RENDERER': default_meta_renderer,
            'POST_BODY_RENDERER': default_post_renderer,

            'STATIC_ROOT': 'static',
            'IMAGE_ROOT': 'images',

            'WWW_HOST': '0.0.0.0',
            'WWW_PORT': os.environ.get('PORT') or '3030',
            'WWW_TIMEOUT': 15,

            'SHUTDOWN_GRACE': 30,
        }

    def _install_response_handlers(self):
        """
        Add security headers to every response and
        turn HTTP errors into short plain text answers.
        """
        @self.app.after_request
        def security_headers(response):
            response.headers.update(SECURITY_HEADERS)
            return response

        @self.app.errorhandler(HTTPException)
        def http_error(error):
            headers = { 'Content-Type': 'text/plain; charset=utf-8' }
            return error.description + '\n', error.code, headers

    def _install_routes(self):
        """
        Add routes for the home page, contact page, posts and static files.
        """
        @self.app.route('/')
        def index():
            lang = self.request_lang()

            try:
                posts = self.content.list_posts(lang)
            except OSError as err:
                errln('error reading posts directory: {}'.format(err))
                abort(500, description = 'Could not read posts')

            response = make_response(self.render_page('Home', compose_home(lang, posts)))
            self.set_lang_cookie(response, lang)
            return response

        @self.app.route('/contact')
        def contact():
            lang = self.request_lang()

            response = make_response(self.render_page('Contact', compose_contact(lang)))
            self.set_lang_cookie(response, lang)
            return response

        # path converter, so that traversal attempts reach validation:
        @self.app.route('/posts/<path:slug>')
        def post(slug):
            if not is_valid_slug(slug):
                abort(400, description = 'Invalid post slug')

            try:
                raw = self.reader.read(slug)
            except InvalidSlug:
                abort(400, description = 'Invalid post slug')
            except PostNotFound:
                abort(404, description = 'Post not found')

            frontmatter, body = self.content.parse(raw)

            try:
                body_html = self.app.config['POST_BODY_RENDERER'](body)
            except Exception as err:
                errln('error rendering post {}: {}'.format(slug, err))
                abort(500, description = 'Error rendering post')

            title = frontmatter.title or humanize_slug(slug)
            return self.render_page(title, compose_post(title, frontmatter.date, body_html))

        @self.app.route('/static/<path:filename>')
        def static_files(filename):
            return send_from_directory(os.path.abspath(self.app.config['STATIC_ROOT']), filename)

        @self.app.route('/images/<path:filename>')
        def image_files(filename):
            return send_from_directory(os.path.abspath(self.app.config['IMAGE_ROOT']), filename)

    def _install_everything(self):
        """
        Install everything needed for the blog to run.
        """
        self._install_response_handlers()
        self._install_routes()

    def request_lang(self):
        """ Language for the current request, from the query string or cookie. """
        return resolve_lang(request.args.get('lang'), request.cookies.get(LANG_COOKIE))

    def set_lang_cookie(self, response, lang):
        """ Remember 'lang' for a year so other pages don't need '?lang='. """
        response.set_cookie(LANG_COOKIE, lang,
            max_age  = LANG_COOKIE_MAX_AGE,
            path     = '/',
            httponly = False,
            samesite = 'Lax')

    def render_page(self, title, content):
        """
        Render the base template. 'title' is escaped by the template,
        'content' must be Markup built by the page composer.
        """
        try:
            return self.template.render(title = title, content = content)
        except TemplateError as err:
            errln('error executing template: {}'.format(err))
            abort(500, description = 'Error rendering page')

    def build_server(self, host, port, app):
        """
        Threaded Werkzeug server for 'app'. Connections that stay silent
        for WWW_TIMEOUT seconds are dropped.
        """
        handler = type('RequestHandler', (WSGIRequestHandler,), {
            'timeout': self.app.config['WWW_TIMEOUT'],
        })

        return make_server(host, port, app,
            threaded        = True,
            request_handler = handler)

    def serve(self, host = None, port = None):
        """
        Run in server mode until SIGINT or SIGTERM.
        In-flight requests get SHUTDOWN_GRACE seconds to complete.
        """
        host = host or self.app.config['WWW_HOST']
        port = int(port or self.app.config['WWW_PORT'])

        tracker = RequestTracker(self.app)
        server = self.build_server(host, port, tracker)

        def shutdown(signum, frame):
            outln('Shutting down gracefully...')

            # shutdown() blocks until serve_forever() returns, which runs here:
            threading.Thread(target = server.shutdown).start()

        previous = {
            signum: signal.signal(signum, shutdown)
            for signum in (signal.SIGINT, signal.SIGTERM)
        }

        outln('Blog running at http://localhost:{}'.format(port))
        try:
            server.serve_forever()
        finally:
            server.server_close()
            for signum, handler in previous.items():
                if handler is not None:
                    signal.signal(signum, handler)

        if not tracker.wait_idle(self.app.config['SHUTDOWN_GRACE']):
            warnln('{} requests still running after the grace period'.format(tracker.active))

    def list_posts(self, lang):
        """
        Print the post index for 'lang'.
        """
        for post in self.content.list_posts(lang):
            outln('{:<14} {:<40} {}'.format(post.date_display, post.title, post.slug))


# Parser:

def make_parser():
    parser = ArgumentParser(
        description = __doc__,
        formatter_class = RawDescriptionHelpFormatter,
    )

    parser.add_argument('-H', '--host',
        help = 'address to listen on (default: WWW_HOST, 0.0.0.0)')

    parser.add_argument('-p', '--port',
        help = 'port to listen on (default: $PORT or 3030)',
        type = int)

    parser.add_argument('-l', '--list',
        help = 'print the post index for a language and exit',
        choices = ['en', 'th'])

    return parser


# Entry point:

def main():
    parser = make_parser()
    options = parser.parse_args()

    try:
        blog = Blog()
    except TemplateError as err:
        errln('failed to load the page template: {!r}'.format(err))
        sys.exit(1)

    if options.list:
        try:
            blog.list_posts(options.list)
        except OSError as err:
            errln('failed to list posts: {}'.format(err))
            sys.exit(1)
        return

    try:
        blog.serve(options.host, options.port)
    except (OSError, ValueError) as err:
        errln('failed to start the server: {}'.format(err))
        sys.exit(1)


if __name__ == '__main__':
    try:
        main()
    except KeyboardInterrupt:
        pass
