from dataclasses import dataclass


@dataclass
class ConfiguracionCliente:
    """Parámetros del cliente; se pasa explícitamente a cada componente"""

    base_url: str = "http://localhost:8000"
    timeout_segundos: float = 15.0
    espera_login_segundos: float = 10.0
    espera_filtros_segundos: float = 0.3
    espera_geocoding_segundos: float = 0.35
    intervalo_alertas_segundos: float = 300.0
    cache_geocoding_max: int = 200
    cache_geocoding_ttl_segundos: float = 3600.0
    nominatim_url: str = "https://nominatim.openstreetmap.org"
    osrm_url: str = "https://router.project-osrm.org"
    pais_geocoding: str = "Ecuador"
    archivo_sesion: str = ".flota_sesion.json"
