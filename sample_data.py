"""
sample_data.py — Starter plants and canned datasets.

STARTER_PLANTS seed an empty database (see database.seed_defaults).
AVAILABLE_DATASETS are ready-made datasets imported through the same
reconciler as generated ones; their ids are local to each dataset.
"""

from utils.validators import dataset_from_dict


STARTER_PLANTS_DATA = [
    {
        'id': 'starter-tomato',
        'species': 'Tomato (Solanum lycopersicum)',
        'germinationNeeds': 'Start seeds indoors 6-8 weeks before last frost in spring. '
                            'Keep soil moist and warm (75-85°F).',
        'optimalConditions': 'Full sun (6-8 hours/day). Well-drained, fertile soil with pH 6.0-6.8. '
                             'Consistent watering through summer.',
    },
    {
        'id': 'starter-basil',
        'species': 'Basil (Ocimum basilicum)',
        'germinationNeeds': 'Sow seeds directly after last frost or start indoors. '
                            'Needs light to germinate. Keep soil at 70°F.',
        'optimalConditions': 'Full sun (6-8 hours/day). Rich, moist, but well-drained soil. '
                             'Likes warm summer heat.',
    },
    {
        'id': 'starter-carrot',
        'species': 'Carrot (Daucus carota)',
        'germinationNeeds': 'Sow seeds directly in loose, sandy soil in spring or fall. '
                            'Keep moist. Germination takes 14-21 days.',
        'optimalConditions': 'Full sun to partial shade. Loose, well-drained soil. pH 6.0-7.0. '
                             'Cool temperatures preferred.',
    },
]


_DEFAULT_US = {
    'locations': [{
        'id': 'loc-1',
        'name': 'Backyard Beds',
        'location': 'Columbus, Ohio, USA',
        'temperatureUnit': 'F',
        'conditions': {
            'temperature': 'Warm summers, 70-85°F',
            'sunlight': 'Full sun, 6-8 hours',
            'soil': 'Loamy, well-drained',
            'currentSeason': 'Spring',
        },
        'growingSystems': 'raised beds, seed trays',
        'growingMethods': 'direct sow, transplant',
    }],
    'plants': [
        {
            'id': 'p-1',
            'species': 'Zucchini (Cucurbita pepo)',
            'germinationNeeds': 'Direct sow in late spring once soil is warm, above 65°F.',
            'optimalConditions': 'Full sun, rich well-drained soil, warm summer weather.',
        },
        {
            'id': 'p-2',
            'species': 'Lettuce (Lactuca sativa)',
            'germinationNeeds': 'Sow in early spring or fall; germinates in cool soil.',
            'optimalConditions': 'Partial shade in summer heat, cool temperatures, moist soil.',
        },
        {
            'id': 'p-3',
            'species': 'Green Bean (Phaseolus vulgaris)',
            'germinationNeeds': 'Direct sow after last frost in spring when soil is warm.',
            'optimalConditions': 'Full sun, well-drained soil, warm days.',
        },
    ],
    'plantings': [
        {'id': 'pl-1', 'plantId': 'p-1', 'gardenId': 'loc-1', 'name': 'Bed 1 Zucchini',
         'history': [{'id': 'h-1', 'status': 'Wishlist', 'date': '2024-03-01T00:00:00Z'}]},
        {'id': 'pl-2', 'plantId': 'p-2', 'gardenId': 'loc-1', 'name': 'Spring Lettuce',
         'history': [{'id': 'h-1', 'status': 'Planning', 'date': '2024-02-20T00:00:00Z'}]},
        {'id': 'pl-3', 'plantId': 'p-3', 'gardenId': 'loc-1', 'name': 'Pole Beans',
         'history': [{'id': 'h-1', 'status': 'Wishlist', 'date': '2024-03-05T00:00:00Z'}]},
    ],
}

_NEW_ZEALAND = {
    'locations': [{
        'id': 'loc-1',
        'name': 'Kitchen Garden',
        'location': 'Christchurch, New Zealand',
        'temperatureUnit': 'C',
        'conditions': {
            'temperature': 'Mild, 12-22°C',
            'sunlight': 'Full sun, 8+ hours in summer',
            'soil': 'Silty loam, well-drained',
            'currentSeason': 'Autumn',
        },
    }],
    'plants': [
        {
            'id': 'p-1',
            'species': 'Kumara (Ipomoea batatas)',
            'germinationNeeds': 'Sprout tubers in spring; plant slips once soil is warm.',
            'optimalConditions': 'Full sun, warm sheltered site, well-drained sandy soil.',
        },
        {
            'id': 'p-2',
            'species': 'Silverbeet (Beta vulgaris subsp. vulgaris)',
            'germinationNeeds': 'Sow in spring or autumn.',
            'optimalConditions': 'Full sun to partial shade, cool to mild temperatures, '
                                 'well-drained soil.',
        },
        {
            'id': 'p-3',
            'species': 'Feijoa (Acca sellowiana)',
            'germinationNeeds': 'Usually grown from grafted plants set out in autumn or winter.',
            'optimalConditions': 'Full sun, well-drained soil, tolerates cool winters.',
        },
    ],
    'plantings': [
        {'id': 'pl-1', 'plantId': 'p-1', 'gardenId': 'loc-1', 'name': 'Kumara Mound',
         'history': [{'id': 'h-1', 'status': 'Wishlist', 'date': '2024-04-10T00:00:00Z'}]},
        {'id': 'pl-2', 'plantId': 'p-2', 'gardenId': 'loc-1', 'name': 'Winter Silverbeet',
         'history': [{'id': 'h-1', 'status': 'Growing', 'date': '2024-04-02T00:00:00Z'}]},
        {'id': 'pl-3', 'plantId': 'p-3', 'gardenId': 'loc-1',
         'history': [{'id': 'h-1', 'status': 'Wishlist', 'date': '2024-04-12T00:00:00Z'}]},
    ],
}


AVAILABLE_DATASETS = {
    'default-us': {
        'name': 'Default US Starter Kit',
        'description': 'A collection of common plants for North American gardens.',
        'data': _DEFAULT_US,
    },
    'new-zealand': {
        'name': 'New Zealand Edibles',
        'description': 'Native and common edible plants found in New Zealand.',
        'data': _NEW_ZEALAND,
    },
}


STARTER_PLANTS = dataset_from_dict({'plants': STARTER_PLANTS_DATA}).plants


def list_datasets():
    """Key, name and description of each canned dataset."""
    return [
        {'key': key, 'name': info['name'], 'description': info['description']}
        for key, info in AVAILABLE_DATASETS.items()
    ]


def load_dataset(key):
    """Parse a canned dataset. Unknown keys raise KeyError."""
    if key not in AVAILABLE_DATASETS:
        raise KeyError(f'Dataset with key "{key}" not found.')
    return dataset_from_dict(AVAILABLE_DATASETS[key]['data'])
