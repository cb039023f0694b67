"""Shared markup fixtures modelled on the upstream site's page layouts."""

import pytest

BASE_URL = "https://komiku.test"


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def listing_html():
    return """
    <html><body>
    <div class="daftar">
        <div class="bge"><div class="kan"><a href="/manga/one-piece/"><h3>One Piece</h3></a></div></div>
        <div class="bge"><div class="kan"><a href="https://komiku.test/manga/naruto/">Naruto</a></div></div>
        <div class="bge"><div class="kan"><a href="/manga/naruto/#top"> Naruto </a></div></div>
    </div>
    </body></html>
    """


@pytest.fixture
def detail_html():
    return """
    <html>
    <head><meta property="og:title" content="Komik Naruto"></head>
    <body>
    <div id="Judul"><h1>Komik Naruto</h1></div>
    <section id="Informasi">
        <div class="ims"><img src="//img.example/covers/n.png" alt="Naruto"></div>
        <table class="inftable">
            <tr><td>Judul Komik</td><td> Naruto </td></tr>
            <tr><td>Judul Indonesia</td><td>Naruto Shippuden</td></tr>
            <tr><td>Jenis Komik</td><td>Manga (Jepang)!!</td></tr>
            <tr><td>Pengarang</td><td>Masashi   Kishimoto</td></tr>
            <tr><td>Status</td><td>Tamat</td></tr>
            <tr><td>Umur Pembaca</td><td>13 Tahun</td></tr>
            <tr><td>Cara Baca</td><td>Kanan ke kiri</td></tr>
        </table>
        <ul class="genre">
            <li class="genre"><a href="/genre/action/"><span>Action</span></a></li>
            <li class="genre"><a href="/genre/adventure/"><span>Adventure</span></a></li>
            <li class="genre"><a href="/genre/action/"><span>Action</span></a></li>
        </ul>
    </section>
    <section id="Sinopsis"><p>  Kisah seorang ninja muda.  </p></section>
    <table id="Daftar_Chapter">
        <tr><th>Chapter</th><th>Tanggal</th></tr>
        <tr>
            <td class="judulseries"><a href="/naruto-chapter-2/"><span>Chapter 2</span></a></td>
            <td class="tanggalseries">02/01/2020</td>
        </tr>
        <tr>
            <td class="judulseries"><a href="/naruto-chapter-1/"><span>Chapter 1</span></a></td>
            <td class="tanggalseries">01/01/2020</td>
        </tr>
    </table>
    </body>
    </html>
    """


@pytest.fixture
def chapter_html():
    return """
    <html><body>
    <div id="Baca_Komik">
        <h1>Naruto Chapter 1</h1>
        <img src="https://cdn.example/naruto/1/01.jpg" alt="Naruto 1">
        <img src="https://cdn.example/iklan/banner.gif" alt="Iklan">
        <img src="//cdn.example/naruto/1/02.webp" alt="Naruto 2">
        <img src="data:image/gif;base64,R0lGODlhAQABAAAAACw=" data-src="https://cdn.example/naruto/1/03.png">
    </div>
    </body></html>
    """
