"""
Liste par défaut des checkpoints du corridor Taveta / Mombasa / Dar es Salaam → Zambie → RDC.
Utilisée par POST /api/v1/checkpoints/seed ; l'ordre de la liste donne sequence_order.
"""

from typing import List

# (nom, nom affiché, région, pays, majeur, carburant, frontière, km depuis le départ, lat, lon, alias)
DEFAULT_CHECKPOINTS = [
    ("TAVETA KENYA", "Taveta Kenya", "KENYA", "KE", True, True, True, 0, -3.4000, 37.6833, ["TAVETA", "TAVETA KE"]),
    ("BONJE", "Bonje", "TANZANIA_COASTAL", "TZ", False, False, False, 30, -3.9500, 37.8200, ["BONJE TZ"]),
    ("MOMBASA", "Mombasa", "KENYA", "KE", True, True, False, 50, -4.0435, 39.6682,
     ["MOMBASA PORT", "MOMBASA KE", "MOMBASA KENYA", "MSA"]),
    ("HOROHORO", "Horohoro", "TANZANIA_COASTAL", "TZ", False, False, False, 80, -4.6500, 38.9000, ["HOROHORO TZ"]),
    ("TANGA", "Tanga", "TANZANIA_COASTAL", "TZ", True, True, False, 120, -5.0689, 39.0986, ["TANGA TZ"]),
    ("KANGE", "Kange", "TANZANIA_COASTAL", "TZ", False, False, False, 150, -5.1800, 38.9500, ["KANGE TZ"]),
    ("PONGWE", "Pongwe", "TANZANIA_COASTAL", "TZ", False, False, False, 180, -5.3000, 38.9200, ["PONGWE TZ"]),
    ("MUHEZA", "Muheza", "TANZANIA_COASTAL", "TZ", False, True, False, 200, -5.1714, 38.7780, ["MUHEZA TZ"]),
    ("SEGERA", "Segera", "TANZANIA_COASTAL", "TZ", False, False, False, 230, -5.6500, 38.7000, ["SEGERA TZ"]),
    ("MANGA", "Manga", "TANZANIA_COASTAL", "TZ", False, False, False, 260, -5.8500, 38.6500, ["MANGA TZ"]),
    ("MSATA", "Msata", "TANZANIA_COASTAL", "TZ", False, False, False, 290, -6.0500, 38.5500, ["MSATA TZ"]),
    ("MKATA", "Mkata", "TANZANIA_INTERIOR", "TZ", False, False, False, 320, -6.3500, 38.3500, ["MKATA TZ"]),
    ("DSM TAHMEED YARD", "DSM Tahmeed Yard", "TANZANIA_COASTAL", "TZ", True, True, False, 350, -6.7924, 39.2083,
     ["TAHMEED YARD", "DSM YARD", "DSM TAHMEED"]),
    ("DSM", "Dar Es Salaam", "TANZANIA_COASTAL", "TZ", True, True, False, 360, -6.7924, 39.2083,
     ["DAR ES SALAAM", "DAR", "DSM PORT", "DAR ES SALAAM PORT"]),
    ("KIMARA", "Kimara", "TANZANIA_COASTAL", "TZ", False, False, False, 380, -6.7333, 39.2167, ["KIMARA TZ"]),
    ("VIGWAZA", "Vigwaza", "TANZANIA_INTERIOR", "TZ", False, False, False, 420, -6.7000, 38.9000, ["VIGWAZA TZ"]),
    ("KIBAHA", "Kibaha", "TANZANIA_COASTAL", "TZ", False, True, False, 440, -6.7699, 38.9159, ["KIBAHA TZ"]),
    ("MLANDIZI", "Mlandizi", "TANZANIA_INTERIOR", "TZ", False, False, False, 470, -6.7100, 38.5500, ["MLANDIZI TZ"]),
    ("MDAULA", "Mdaula", "TANZANIA_INTERIOR", "TZ", False, False, False, 500, -6.6500, 38.3500, ["MDAULA TZ"]),
    ("CHALINZE", "Chalinze", "TANZANIA_COASTAL", "TZ", True, True, False, 530, -6.6978, 38.3687, ["CHALINZE TZ"]),
    ("MISUGUSUGU", "Misugusugu", "TANZANIA_INTERIOR", "TZ", False, False, False, 560, -6.5500, 37.8500,
     ["MISUGUSUGU TZ"]),
    ("MIKESE", "Mikese", "TANZANIA_INTERIOR", "TZ", False, False, False, 590, -6.7500, 37.6500, ["MIKESE TZ"]),
    ("MOROGORO", "Morogoro", "TANZANIA_INTERIOR", "TZ", True, True, False, 620, -6.8213, 37.6628, ["MOROGORO TZ"]),
    ("DOMA", "Doma", "TANZANIA_INTERIOR", "TZ", False, False, False, 650, -7.1000, 37.4000, ["DOMA TZ"]),
    ("MIKUMI", "Mikumi", "TANZANIA_INTERIOR", "TZ", True, True, False, 680, -7.4067, 36.9786,
     ["MIKUMI TZ", "MIKUMI NATIONAL PARK"]),
    ("MBUYUNI", "Mbuyuni", "TANZANIA_INTERIOR", "TZ", False, False, False, 720, -7.7500, 36.5500, ["MBUYUNI TZ"]),
    ("ILULA", "Ilula", "TANZANIA_INTERIOR", "TZ", False, False, False, 750, -7.9000, 36.0500, ["ILULA TZ"]),
    ("IRINGA", "Iringa", "TANZANIA_INTERIOR", "TZ", True, True, False, 800, -7.7767, 35.6988, ["IRINGA TZ"]),
    ("IFUNDA", "Ifunda", "TANZANIA_INTERIOR", "TZ", False, False, False, 850, -8.2500, 35.3500, ["IFUNDA TZ"]),
    ("MAFINGA", "Mafinga", "TANZANIA_INTERIOR", "TZ", True, True, False, 900, -8.3828, 35.0638, ["MAFINGA TZ"]),
    ("MAKAMBAKO", "Makambako", "TANZANIA_INTERIOR", "TZ", False, True, False, 950, -8.8850, 34.2953,
     ["MAKAMBAKO TZ"]),
    ("IGAWA", "Igawa", "TANZANIA_INTERIOR", "TZ", False, False, False, 1000, -8.9500, 34.0500, ["IGAWA TZ"]),
    ("IGURUSI", "Igurusi", "TANZANIA_INTERIOR", "TZ", False, False, False, 1050, -8.5500, 33.6500, ["IGURUSI TZ"]),
    ("MBEYA", "Mbeya", "TANZANIA_INTERIOR", "TZ", True, True, False, 1100, -8.9094, 33.4611, ["MBEYA TZ"]),
    ("SONGWE", "Songwe", "TANZANIA_BORDER", "TZ", False, False, False, 1150, -9.1500, 33.1500, ["SONGWE TZ"]),
    ("TUNDUMA", "Tunduma", "TANZANIA_BORDER", "TZ", True, True, True, 1200, -9.3000, 32.7667,
     ["TUNDUMA BORDER", "TUNDUMA TZ ZM", "TUNDUMA TZ", "TDM"]),
    ("NAKONDE", "Nakonde", "ZAMBIA_NORTH", "ZM", True, True, True, 1200, -9.3417, 32.7500,
     ["NAKONDE ZM", "NAKONDE BORDER"]),
    ("MKASI", "Mkasi", "ZAMBIA_NORTH", "ZM", False, False, False, 1230, -9.6000, 32.5500, ["MKASI ZM"]),
    ("ISOKA", "Isoka", "ZAMBIA_NORTH", "ZM", False, True, False, 1280, -10.1333, 32.6333, ["ISOKA ZM"]),
    ("CHINSALI", "Chinsali", "ZAMBIA_NORTH", "ZM", True, True, False, 1350, -10.5411, 32.0803, ["CHINSALI ZM"]),
    ("SHIWANGAMU", "Shiwangamu", "ZAMBIA_NORTH", "ZM", False, False, False, 1400, -11.2500, 31.5500,
     ["SHIWANGAMU ZM"]),
    ("MPIKA", "Mpika", "ZAMBIA_NORTH", "ZM", True, True, False, 1450, -11.8339, 31.4431, ["MPIKA ZM"]),
    ("KALONJE", "Kalonje", "ZAMBIA_NORTH", "ZM", False, False, False, 1500, -12.3000, 30.9500, ["KALONJE ZM"]),
    ("MUNUNGA", "Mununga", "ZAMBIA_CENTRAL", "ZM", False, False, False, 1550, -12.7500, 30.4500, ["MUNUNGA ZM"]),
    ("SERENJE", "Serenje", "ZAMBIA_CENTRAL", "ZM", True, True, False, 1600, -13.2306, 30.2350, ["SERENJE ZM"]),
    ("MKUSHI", "Mkushi", "ZAMBIA_CENTRAL", "ZM", False, True, False, 1680, -13.6233, 29.3939, ["MKUSHI ZM"]),
    ("KAPIRI MPOSHI", "Kapiri Mposhi", "ZAMBIA_CENTRAL", "ZM", True, True, False, 1750, -13.9714, 28.6697,
     ["KAPIRI MPOSHI ZM", "KAPIRI"]),
    ("NDOLA", "Ndola", "ZAMBIA_COPPERBELT", "ZM", True, True, False, 1820, -12.9585, 28.6366, ["NDOLA ZM"]),
    ("KITWE", "Kitwe", "ZAMBIA_COPPERBELT", "ZM", True, True, False, 1870, -12.8028, 28.2139, ["KITWE ZM"]),
    ("CHINGOLA", "Chingola", "ZAMBIA_COPPERBELT", "ZM", True, True, False, 1920, -12.5289, 27.8631, ["CHINGOLA ZM"]),
    ("CHAMBISHI", "Chambishi", "ZAMBIA_COPPERBELT", "ZM", False, True, False, 1950, -12.6500, 28.0500,
     ["CHAMBISHI ZM"]),
    ("CHILILABOMBWE", "Chililabombwe", "ZAMBIA_COPPERBELT", "ZM", True, True, False, 2000, -12.3647, 27.8222,
     ["CHILILABOMBWE ZM"]),
    ("PETRODA", "Petroda", "ZAMBIA_COPPERBELT", "ZM", False, True, False, 2030, -12.4000, 27.8000, ["PETRODA ZM"]),
    ("KONKOLA", "Konkola", "ZAMBIA_COPPERBELT", "ZM", True, True, False, 2060, -12.4200, 27.7500, ["KONKOLA ZM"]),
    ("KASUMBALESA ZMB", "Kasumbalesa (Zambia)", "ZAMBIA_BORDER", "ZM", True, True, True, 2100, -12.5722, 27.8944,
     ["KASUMBALESA ZM", "KASUMBALESA ZAMBIA", "KASUMBALESA"]),
    ("SAKANIA", "Sakania", "DRC", "CD", True, True, False, 2110, -12.6333, 28.1500, ["SAKANIA CD", "SAKANIA DRC"]),
    ("KASUMBALESA DRC", "Kasumbalesa (DRC)", "DRC", "CD", True, True, True, 2110, -12.5833, 27.9000,
     ["KASUMBALESA CD", "KASUMBALESA CONGO"]),
    ("WHISKY", "Whisky", "DRC", "CD", False, True, False, 2150, -12.5000, 27.9500, ["WHISKY DRC", "WHISKY CD"]),
    ("WHISKEY", "Whiskey", "DRC", "CD", True, True, False, 2150, -12.5000, 27.9500, ["WHISKEY DRC", "WHISKEY CD"]),
    ("KANYAKA", "Kanyaka", "DRC", "CD", False, False, False, 2200, -11.7500, 27.4500, ["KANYAKA DRC", "KANYAKA CD"]),
    ("LUMATU", "Lumatu", "DRC", "CD", False, False, False, 2250, -11.5000, 27.3000, ["LUMATU DRC", "LUMATU CD"]),
    ("LUBUMBASHI", "Lubumbashi", "DRC", "CD", True, True, False, 2300, -11.6667, 27.4667,
     ["LUBUMBASHI CD", "LUBUMBASHI DRC"]),
    ("LIKASI", "Likasi", "DRC", "CD", True, True, False, 2400, -10.9810, 26.7333, ["LIKASI CD", "LIKASI DRC"]),
    ("FUNGURUME", "Fungurume", "DRC", "CD", False, False, False, 2500, -10.5667, 26.2833,
     ["FUNGURUME CD", "FUNGURUME DRC"]),
    ("KOLWEZI", "Kolwezi", "DRC", "CD", True, True, False, 2600, -10.7167, 25.4667, ["KOLWEZI CD", "KOLWEZI DRC"]),
]


def default_checkpoint_rows(created_by: str = "system") -> List[dict]:
    """Lignes prêtes pour bulk_insert_mappings(Checkpoint, ...)."""
    return [
        {
            "name": name,
            "display_name": display_name,
            "sequence_order": order,
            "region": region,
            "country": country,
            "is_major": is_major,
            "fuel_available": fuel,
            "border_crossing": border,
            "estimated_distance_from_start": distance,
            "latitude": lat,
            "longitude": lon,
            "alternative_names": aliases,
            "is_active": True,
            "is_deleted": False,
            "created_by": created_by,
        }
        for order, (name, display_name, region, country, is_major, fuel, border, distance, lat, lon, aliases)
        in enumerate(DEFAULT_CHECKPOINTS, start=1)
    ]
