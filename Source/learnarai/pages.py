#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
HTML fragments for the home, post and contact pages.
Everything returned here is Markup, ready for the base template.
"""


from markupsafe import Markup

from .content import format_date, parse_date


# Languages:

LANGUAGES = ('en', 'th')
DEFAULT_LANGUAGE = 'th'


def resolve_lang(query_value, cookie_value):
    """
    Pick the page language: the query parameter when given, then the cookie.
    Anything other than a supported language falls back to Thai.
    """
    lang = query_value or cookie_value or ''
    if lang not in LANGUAGES:
        return DEFAULT_LANGUAGE
    return lang


# Home page:

WELCOME = {
    'th': {
        'title': 'ยินดีต้อนรับสู่ LearnArai',
        'text': 'สวัสดีครับ!! ผมคือคนที่ชอบสร้างสรรค์และเรียนรู้สิ่งต่างๆ '
                'นี่คือพื้นที่ส่วนตัวของผมซึ่งเอาไว้สำหรับแชร์ความคิด '
                'สิ่งที่ได้เรียนรู้ หรือโปรเจกต์ที่กำลังทำอยู่',
        'posts': 'บทความ',
    },
    'en': {
        'title': 'Welcome to LearnArai',
        'text': "Hi!! I'm someone who likes to create and learn new things. "
                "This is my personal space where I can share ideas or "
                "projects I'm currently working on.",
        'posts': 'Posts',
    },
}


def compose_home(lang, posts):
    """ Welcome text for 'lang' followed by the list of 'posts'. """
    welcome = WELCOME[lang]

    lines = [
        Markup('<h1>{}</h1>').format(welcome['title']),
        Markup('<p class="about-me">{}</p>').format(welcome['text']),
        Markup('<h2 class="posts-heading">{}</h2>').format(welcome['posts']),
        Markup('<ul class="post-list">'),
    ]

    for post in posts:
        lines.append(Markup(
            '<li><a href="/posts/{}">{}</a><span class="post-date">{}</span></li>'
        ).format(post.slug, post.title, post.date_display))

    lines.append(Markup('</ul>'))
    return Markup('\n').join(lines) + Markup('\n')


# Post page:

def compose_post(title, date, body_html):
    """
    Wrap an already rendered post body in an article.
    'date' is the raw frontmatter value and is only shown when it parses.
    """
    lines = [
        Markup('<article>'),
        Markup('<div class="post-header">'),
        Markup('<h1>{}</h1>').format(title),
    ]

    parsed = parse_date(date)
    if parsed is not None:
        lines.append(Markup('<span class="post-meta">{}</span>').format(format_date(parsed)))

    lines.append(Markup('</div>'))
    lines.append(Markup(body_html) + Markup('</article>'))
    return Markup('\n').join(lines)


# Contact page:

CONTACT_LIST = '''
	<section class="contact-section">
		<h2>Contact Me</h2>
		<ul class="contact-list">
			<li>Email: <a href="mailto:teerapat.yj@gmail.com">teerapat.yj@gmail.com</a></li>
			<li>GitHub: <a href="https://github.com/kenn-teera" target="_blank" rel="noopener noreferrer">github.com/kenn-teera</a></li>
			<li>LinkedIn: <a href="https://linkedin.com/in/teerapat-yajai" target="_blank" rel="noopener noreferrer">linkedin.com/in/teerapat-yajai</a></li>
		</ul>
	</section>
</div>'''

CONTACT = {
    'th': Markup('''<div class="contact-page">
	<h1>Contact &amp; About Me</h1>

	<section class="about-section">
		<h2>About Me</h2>
		<p>ธีรภัทร ยาใจ</p>
		<p>website นี้จัดทำขึ้นเพื่อการศึกษาและแบ่งปันความรู้เท่านั้น หากมีข้อผิดพลาดหรือต้องการให้เพิ่มเติมอะไร สามารถติดต่อตามที่ติดต่อข้างล่างได้เลย ขอบคุณที่เข้ามาอ่านกันนะครับ 🥰</p>
	</section>
''' + CONTACT_LIST),

    'en': Markup('''<div class="contact-page">
	<h1>Contact &amp; About Me</h1>

	<section class="about-section">
		<h2>About Me</h2>
		<p>Teerapat Yajai</p>
		<p>This website is built for learning and sharing knowledge. If there are any errors or you want to add more, you can contact me through the contact information below. Thank you for reading! 🥰</p>
	</section>
''' + CONTACT_LIST),
}


def compose_contact(lang):
    """ The hand written about/contact fragment for 'lang'. """
    return CONTACT[lang]

