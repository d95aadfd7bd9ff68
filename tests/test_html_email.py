"""Tests for HTML alert-email extraction."""

import pytest

from jobflow.html_email import HtmlEmailSource, html_to_text, is_apply_link, is_valid_job_link

DIGEST_HTML = """
<html><body>
<table>
  <tr><td>
    <div class="job">
      <a href="https://www.linkedin.com/jobs/view/111">Responsable Communication Digitale</a>
      <p>Fondation Horizon · Genève</p>
      <a href="https://www.linkedin.com/jobs/view/111/apply">Postuler</a>
    </div>
  </td></tr>
  <tr><td>
    <div class="job">
      <a href="https://www.linkedin.com/jobs/view/222">Coordinatrice Événementiel Senior</a>
      <p>Palexpo SA · Genève</p>
      <a href="https://www.linkedin.com/jobs/view/222/apply">Voir l'offre</a>
    </div>
  </td></tr>
</table>
<p>
  <a href="https://www.linkedin.com/unsubscribe?x=1">Se désabonner</a>
  <a href="https://www.linkedin.com/company/foo">LinkedIn Corporation</a>
</p>
</body></html>
"""


@pytest.fixture
def source():
    return HtmlEmailSource()


class TestLinkFilter:
    @pytest.mark.parametrize(
        "url,text",
        [
            ("mailto:rh@acme.ch", "Écrire aux RH"),
            ("https://acme.ch/jobs/1", "ab"),
            ("https://www.facebook.com/acme", "Suivez-nous"),
            ("https://acme.ch/unsubscribe", "Gérer mes alertes"),
            ("https://acme.ch/jobs", "Politique de confidentialité"),
            ("#top", "Haut de page"),
        ],
    )
    def test_non_job_links(self, url, text):
        assert not is_valid_job_link(url, text)

    def test_job_link(self):
        assert is_valid_job_link("https://www.jobup.ch/fr/emplois/detail/1", "Chargée de projet")

    def test_fragment_and_hash_in_title_are_allowed(self):
        assert is_valid_job_link("https://acme.ch/offre/12#apply", "Chargée de projet")
        assert is_valid_job_link("https://acme.ch/offre/13", "C# Developer")

    def test_apply_words(self):
        assert is_apply_link("Postuler maintenant")
        assert is_apply_link("View job")
        assert not is_apply_link("Responsable savoir-faire")


class TestLinkPairing:
    def test_titles_paired_with_apply_links(self, source):
        drafts = source.extract(DIGEST_HTML)
        assert [(d.title, d.company, d.location) for d in drafts] == [
            ("Responsable Communication Digitale", "Fondation Horizon", "Genève"),
            ("Coordinatrice Événementiel Senior", "Palexpo SA", "Genève"),
        ]
        assert drafts[0].source_url == "https://www.linkedin.com/jobs/view/111/apply"
        assert drafts[1].source_url == "https://www.linkedin.com/jobs/view/222/apply"
        assert drafts[0].source_label == "LinkedIn"
        assert drafts[0].channel == "linkedin"

    def test_title_link_without_apply_keeps_its_own_url(self, source):
        html = (
            '<div><a href="https://www.jobup.ch/fr/emplois/detail/9">Assistante de direction bilingue</a>'
            "<p>Nestlé Waters · Vevey</p></div>"
        )
        draft = source.extract(html)[0]
        assert draft.source_url == "https://www.jobup.ch/fr/emplois/detail/9"
        assert draft.source_label == "JobUp"
        assert draft.channel == "email"
        assert draft.company == "Nestlé Waters"

    def test_standalone_apply_link_takes_title_from_context(self, source):
        html = (
            "<div><p>Chargée de projets culturels</p><p>Musée d'Art · Genève</p>"
            '<a href="https://www.jobup.ch/fr/emplois/detail/333">Postuler maintenant</a></div>'
        )
        draft = source.extract(html)[0]
        assert draft.title == "Chargée de projets culturels"
        assert draft.company == "Musée d'Art"
        assert draft.source_url == "https://www.jobup.ch/fr/emplois/detail/333"

    def test_apply_link_within_three_ancestors_is_paired(self, source):
        html = (
            "<div><div><div>"
            '<a href="https://acme.ch/jobs/5">Responsable Communication Digitale</a>'
            "</div></div>"
            '<a href="https://acme.ch/jobs/5/apply">Postuler</a>'
            "</div>"
        )
        drafts = source.extract(html)
        assert [d.source_url for d in drafts] == ["https://acme.ch/jobs/5/apply"]

    def test_apply_link_four_ancestors_up_is_not_paired(self, source):
        html = (
            "<section><div><div><div>"
            '<a href="https://acme.ch/jobs/5">Responsable Communication Digitale</a>'
            "</div></div></div>"
            '<a href="https://acme.ch/jobs/5/apply">Postuler</a>'
            "</section>"
        )
        drafts = source.extract(html)
        assert drafts[0].title == "Responsable Communication Digitale"
        assert drafts[0].source_url == "https://acme.ch/jobs/5"
        assert all(d.source_url != "https://acme.ch/jobs/5/apply" for d in drafts)

    def test_duplicate_offers_collapse(self, source):
        block = (
            '<div><a href="https://acme.ch/jobs/{n}">Responsable Communication Digitale</a>'
            "<p>Fondation Horizon · Genève</p></div>"
        )
        html = block.format(n=1) + block.format(n=2)
        assert len(source.extract(html)) == 1


class TestTextFallback:
    def test_falls_back_to_separator_lines(self, source):
        html = "<div><p>Senior Analyst</p><p>Explora Journeys · Genève</p></div>"
        drafts = source.extract(html)
        assert len(drafts) == 1
        assert drafts[0].company == "Explora Journeys"
        assert drafts[0].location == "Genève"

    def test_social_footer_links_are_not_read_as_an_offer(self, source):
        html = (
            "<p>Suivez notre actualité</p>"
            '<p><a href="https://facebook.com/acme">Facebook</a> · '
            '<a href="https://twitter.com/acme">Twitter</a></p>'
        )
        assert source.extract(html) == []

    def test_social_links_dropped_before_text_heuristics(self, source):
        html = (
            "<div><p>Senior Analyst</p><p>Explora Journeys · Genève</p></div>"
            '<p><a href="https://www.instagram.com/acme">Instagram</a> · '
            '<a href="https://acme.ch/privacy">Politique de confidentialité</a></p>'
        )
        drafts = source.extract(html)
        assert [(d.title, d.company, d.location) for d in drafts] == [
            ("Senior Analyst", "Explora Journeys", "Genève"),
        ]

    def test_html_kind_is_registered_with_the_parser(self):
        from jobflow.parser import extract_offers

        drafts = extract_offers("<div><p>Senior Analyst</p><p>Explora Journeys · Genève</p></div>", kind="html")
        assert drafts[0].company == "Explora Journeys"

    def test_empty_input(self, source):
        assert source.extract("") == []
        assert source.extract("<html><body></body></html>") == []

    def test_html_to_text_keeps_blocks_on_lines(self):
        text = html_to_text("<p><b>Senior</b> Analyst</p><div>Explora Journeys</div><br>Genève")
        assert text.split("\n") == ["Senior Analyst", "Explora Journeys", "Genève"]
