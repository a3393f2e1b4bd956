import numpy as np
import pytest

from specz.core.exceptions import ConfigurationException, InvalidInputError, TemplateNotFoundException
from specz.infrastructure.templates import (
    InMemoryTemplateSource,
    NpzTemplateSource,
    TemplateBuilder,
    create_template_source,
)
from specz.tests.spectra import OTHER_LINES, make_spectrum


class TestTemplateBuilder:

    def test_build_prunes_to_redshift_range(self, settings):
        wave, flux, variance = make_spectrum()
        template = TemplateBuilder(settings).build("ref", wave, flux, z_start=0.0, z_end=0.3, variance=variance)
        assert template.id == "ref"
        assert template.transform.size == settings.fft_size
        assert len(template) == settings.fft_size
        assert len(template.zs) == template.end_z_index - template.start_z_index
        assert template.zs[0] >= 0.0
        assert template.zs[-1] <= 0.3
        assert np.all(np.diff(template.zs) > 0)
        assert template.start_z_index == settings.fft_size // 2

    def test_unbounded_range_keeps_every_index(self, settings):
        wave, flux, _ = make_spectrum()
        template = TemplateBuilder(settings).build("ref", wave, flux, redshift=0.2)
        assert (template.start_z_index, template.end_z_index) == (0, settings.fft_size)
        assert template.zs[settings.fft_size // 2] == pytest.approx(0.2)

    def test_reference_arrays_are_not_modified(self, settings):
        wave, flux, _ = make_spectrum()
        flux[100] = np.nan
        before = flux.copy()
        TemplateBuilder(settings).build("ref", wave, flux)
        np.testing.assert_array_equal(flux, before)

    def test_redshift_axis(self, settings):
        zs = TemplateBuilder(settings).redshift_axis(1e-3, 8, 0.5)
        assert zs[4] == pytest.approx(0.5)
        assert zs[5] == pytest.approx(10 ** 1e-3 * 1.5 - 1)

    def test_odd_length_axis_centres_zero_lag(self, settings):
        zs = TemplateBuilder(settings).redshift_axis(1e-3, 7, 0.5)
        assert zs[3] == pytest.approx(0.5)

    def test_invalid_ranges(self, settings):
        wave, flux, _ = make_spectrum()
        builder = TemplateBuilder(settings)
        with pytest.raises(InvalidInputError):
            builder.build("ref", wave, flux, z_start=0.3, z_end=0.1)
        with pytest.raises(InvalidInputError):
            builder.build("ref", wave, flux, z_start=50.0, z_end=60.0)
        with pytest.raises(InvalidInputError):
            builder.build("ref", wave, flux, redshift=-2.0)


class TestTemplateSources:

    def write_archive(self, path):
        wave, flux, variance = make_spectrum()
        other_wave, other_flux, _ = make_spectrum(lines=OTHER_LINES)
        entries = np.array([
            {"id": "emission", "wavelength": wave, "intensity": flux, "variance": variance,
             "z_start": 0.0, "z_end": 0.3, "name": "Emission"},
            {"id": "other", "wavelength": other_wave, "intensity": other_flux},
            {"id": "broken", "wavelength": wave[:10], "intensity": flux[:5]},
        ], dtype=object)
        np.savez(path, templates=entries)
        return path

    def test_npz_source_builds_valid_entries(self, settings, tmp_path):
        source = NpzTemplateSource(str(self.write_archive(tmp_path / "templates.npz")), settings)
        templates = source.get_templates()
        assert sorted(t.id for t in templates) == ["emission", "other"]
        assert source.get_template("emission").name == "Emission"
        assert source.get_templates()[0] is templates[0]
        assert source.validate_template("emission")
        assert not source.validate_template("broken")

    def test_missing_template(self, settings, tmp_path):
        source = NpzTemplateSource(str(self.write_archive(tmp_path / "templates.npz")), settings)
        with pytest.raises(TemplateNotFoundException):
            source.get_template("missing")

    def test_unreadable_archive(self, settings, tmp_path):
        path = tmp_path / "junk.npz"
        path.write_text("not an archive")
        with pytest.raises(ConfigurationException):
            NpzTemplateSource(str(path), settings).get_templates()

    def test_in_memory_source(self, settings):
        wave, flux, _ = make_spectrum()
        template = TemplateBuilder(settings).build("ref", wave, flux)
        source = InMemoryTemplateSource([template])
        assert source.get_template("ref") is template
        assert source.get_templates() == [template]
        with pytest.raises(TemplateNotFoundException):
            source.get_template("nope")

    def test_factory(self, settings, tmp_path):
        with pytest.raises(ConfigurationException):
            create_template_source(settings=settings)
        with pytest.raises(ConfigurationException):
            create_template_source(str(tmp_path / "absent.npz"), settings)
        path = self.write_archive(tmp_path / "templates.npz")
        assert isinstance(create_template_source(str(path), settings), NpzTemplateSource)
