from django.conf import settings
from django.db import migrations, models


def content_fields():
    return [
        ('title', models.CharField(max_length=200)),
        ('description', models.TextField(blank=True, default='')),
        ('complete_description', models.TextField(blank=True, null=True)),
        ('detailed_recipe', models.TextField(blank=True, help_text='Recette détaillée (Markdown)', null=True)),
        ('image_url', models.URLField(blank=True, max_length=500, null=True)),
        ('preparation_time', models.IntegerField(blank=True, help_text='Temps de préparation en minutes', null=True)),
        ('cooking_time', models.IntegerField(blank=True, help_text='Temps de cuisson en minutes', null=True)),
        ('kcal', models.IntegerField(blank=True, null=True)),
        ('servings', models.IntegerField(default=2)),
    ]


def ingredient_fields():
    return [
        ('name', models.CharField(max_length=200)),
        ('quantity', models.CharField(blank=True, default='', max_length=100)),
        ('category', models.CharField(blank=True, default='', max_length=100)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='MenuSettings',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('parameters', models.JSONField(default=dict)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.OneToOneField(on_delete=models.deletion.CASCADE, related_name='menu_settings', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Menu',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('week_start_date', models.DateField(help_text='Lundi de la semaine')),
                ('status', models.CharField(choices=[('generating', 'En cours de génération'), ('ready', 'Prêt')], default='generating', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('user', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='menus', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='Dish',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *content_fields(),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=models.deletion.SET_NULL, related_name='created_dishes', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['id'],
                'verbose_name_plural': 'Dishes',
            },
        ),
        migrations.CreateModel(
            name='Favorite',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *content_fields(),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('user', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='favorites', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='Recipe',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *content_fields(),
                ('is_from_database', models.BooleanField(default=False, help_text="Reprise d'un favori ou d'une recette existante plutôt que générée")),
                ('is_cooked', models.BooleanField(default=False)),
                ('original_dish_id', models.IntegerField(blank=True, help_text="Provenance : id du plat, favori ou recette d'origine (lecture sur un seul saut)", null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('dish', models.ForeignKey(blank=True, help_text='Lien courant vers le catalogue', null=True, on_delete=models.deletion.SET_NULL, related_name='recipes', to='menus.dish')),
                ('menu', models.ForeignKey(blank=True, null=True, on_delete=models.deletion.SET_NULL, related_name='recipes', to='menus.menu')),
            ],
            options={
                'ordering': ['id'],
            },
        ),
        migrations.CreateModel(
            name='DishIngredient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ingredient_fields(),
                ('dish', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='ingredients', to='menus.dish')),
            ],
            options={
                'ordering': ['id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='FavoriteIngredient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ingredient_fields(),
                ('favorite', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='ingredients', to='menus.favorite')),
            ],
            options={
                'ordering': ['id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='RecipeIngredient',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                *ingredient_fields(),
                ('recipe', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='ingredients', to='menus.recipe')),
            ],
            options={
                'ordering': ['id'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='ShoppingList',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('menu', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='shopping_lists', to='menus.menu')),
            ],
            options={
                'ordering': ['-created_at'],
            },
        ),
        migrations.CreateModel(
            name='ShoppingListItem',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=200)),
                ('quantity', models.CharField(blank=True, default='', max_length=100)),
                ('category', models.CharField(blank=True, default='', max_length=100)),
                ('is_manually_added', models.BooleanField(default=False)),
                ('shopping_list', models.ForeignKey(on_delete=models.deletion.CASCADE, related_name='items', to='menus.shoppinglist')),
            ],
            options={
                'ordering': ['category', 'name'],
            },
        ),
    ]
